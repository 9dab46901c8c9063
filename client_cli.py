"""
Command-line client for the background remover service.
Usage: python client_cli.py photo.jpg --color "#0000FF" --output result.png
"""
import argparse
import asyncio
import sys

from app.client import ApiError, BackgroundRemoverClient, ProgressInfo, Session
from app.core.errors import ImageProcessingError, InvalidTransition
from app.core.logging import configure_logging
from app.models.background import PRESET_COLORS


def print_progress(progress: ProgressInfo):
    """Render a one-line progress bar."""
    width = 30
    filled = int(width * progress.percent / 100)
    bar = "#" * filled + "-" * (width - filled)
    print(f"\r[{bar}] {round(progress.percent):3d}%  {progress.message:<24}", end="", flush=True)
    if progress.key == "completed":
        print()


def confirm(prompt: str) -> bool:
    answer = input(f"{prompt} [y/N] ").strip().lower()
    return answer in ("y", "yes")


async def main(args: argparse.Namespace) -> int:
    client = BackgroundRemoverClient(base_url=args.api_url)
    session = Session(client, on_progress=print_progress)

    try:
        health = await client.health()
        print(f"Server status: {health.get('status')} (model loaded: {health.get('model_loaded')})")

        await session.select_image(args.image)
        await session.set_background(args.color)

        session.request_removal()
        if not args.yes and not confirm("Remove the background? This may take a moment."):
            session.cancel_removal()
            print("Cancelled.")
            return 1

        await session.confirm_removal()

        for color in args.also or []:
            await session.set_background(color)
            path = await session.export(args.output_dir)
            print(f"Saved {color}: {path}")

        await session.set_background(args.color)
        path = await session.export(args.output)
        print(f"Saved: {path}")
        return 0

    except (ApiError, ImageProcessingError, InvalidTransition, OSError) as e:
        print(f"\nFailed to remove background: {e}", file=sys.stderr)
        return 1
    finally:
        await client.aclose()


def parse_args(argv=None) -> argparse.Namespace:
    presets = ", ".join(f"{color.name} {color.value}" for color in PRESET_COLORS)
    parser = argparse.ArgumentParser(description="Remove a photo's background and apply a color.")
    parser.add_argument("image", help="JPEG, PNG or WebP file to process")
    parser.add_argument("--color", default="transparent",
                        help=f"Background color as #RRGGBB or 'transparent' (presets: {presets})")
    parser.add_argument("--also", nargs="*", metavar="COLOR",
                        help="Extra colors to export from the same cutout without another server call")
    parser.add_argument("--output", default=None, help="Output file (default: removed-bg-<timestamp>.png)")
    parser.add_argument("--output-dir", default=".", help="Directory for the --also exports")
    parser.add_argument("--api-url", default=None, help="API base URL (default: from BGREMOVER_* settings)")
    parser.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args(argv)


if __name__ == "__main__":
    arguments = parse_args()
    configure_logging(arguments.log_level)
    sys.exit(asyncio.run(main(arguments)))
