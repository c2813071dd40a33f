"""
TransitionCompositor - Main Entry Point

Renders a transition between two images to a numbered PNG sequence, or a
single preview frame.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from PySide6.QtGui import QGuiApplication, QImage

from core.logging.logger import get_logger, setup_logging
from core.settings import CompositorSettings, ExportSettings, SettingsManager, clamp_frame_count
from rendering.pixel_buffer import PixelBuffer
from rendering.sequence_renderer import RenderedFrame, SequenceRenderer
from transitions.compositor import TransitionCompositor
from transitions.types import TransitionKind
from versioning import APP_DESCRIPTION, APP_EXE_NAME, APP_NAME, APP_VERSION

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_EXE_NAME,
        description=APP_DESCRIPTION,
    )
    parser.add_argument("image_a", help="Outgoing image")
    parser.add_argument("image_b", help="Incoming image")
    parser.add_argument("--kind", "-k", default=None,
                        help="Transition kind (e.g. cross_fade, CubeRotate); default from settings")
    parser.add_argument("--frames", "-n", type=int, default=None,
                        help="Number of intervals; frames + 1 images are written")
    parser.add_argument("--output", "-o", default=None, help="Output directory")
    parser.add_argument("--width", type=int, default=None, help="Canvas width")
    parser.add_argument("--height", type=int, default=None, help="Canvas height")
    parser.add_argument("--preview", type=float, default=None, metavar="PROGRESS",
                        help="Write a single frame at this progress instead of a sequence")
    parser.add_argument("--workers", type=int, default=None, help="Compute worker count (0 = auto)")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose debug logging")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    return parser


def load_image(path: str) -> PixelBuffer:
    """Load an image file; a missing or unreadable file yields an empty buffer."""
    image = QImage(path)
    if image.isNull():
        logger.warning("[FALLBACK] Could not load image %s", path)
        return PixelBuffer.empty()
    logger.debug("Loaded %s (%dx%d)", path, image.width(), image.height())
    return PixelBuffer.from_qimage(image)


def make_file_sink(directory: Path):
    """Sink that writes each frame into ``directory`` as it arrives."""
    directory.mkdir(parents=True, exist_ok=True)

    def _sink(frame: RenderedFrame) -> None:
        target = directory / frame.filename
        if not frame.canvas.to_qimage().save(str(target)):
            raise OSError(f"Failed to write {target}")
        logger.debug("Wrote %s (p=%.3f)", target, frame.progress)

    return _sink


def run(args: argparse.Namespace, settings: SettingsManager) -> int:
    compositor_settings = CompositorSettings.from_settings(settings)
    export_settings = ExportSettings.from_settings(settings)

    if args.width is not None:
        compositor_settings.canvas_width = args.width
    if args.height is not None:
        compositor_settings.canvas_height = args.height
    if args.workers is not None:
        compositor_settings.workers = max(0, args.workers)

    kind = TransitionKind.from_name(args.kind or compositor_settings.transition_type)
    output = Path(args.output or export_settings.directory)
    image_a = load_image(args.image_a)
    image_b = load_image(args.image_b)

    with TransitionCompositor.from_settings(compositor_settings) as compositor:
        renderer = SequenceRenderer(compositor, export_settings.prefix, export_settings.extension)
        sink = make_file_sink(output)

        if args.preview is not None:
            canvas = compositor.composite(kind, args.preview, image_a, image_b)
            sink(RenderedFrame(0, args.preview, canvas, f"preview.{export_settings.extension}"))
            logger.info("Preview frame written to %s", output)
            return 0

        frame_count = export_settings.frame_count
        if args.frames is not None:
            frame_count = clamp_frame_count(args.frames)
        renderer.render(kind, image_a, image_b, frame_count, sink=sink)
        logger.info("Sequence of %d frames written to %s", frame_count + 1, output)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the compositor CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug, verbose=args.verbose)

    logger.info("=" * 60)
    logger.info("%s %s Starting", APP_NAME, APP_VERSION)
    logger.info("=" * 60)

    app = QGuiApplication.instance() or QGuiApplication([sys.argv[0]])
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)

    exit_code = 0
    try:
        exit_code = run(args, SettingsManager())
    except ValueError as e:
        logger.error("Invalid arguments: %s", e)
        exit_code = 2
    except Exception as e:
        logger.exception("Fatal error in main: %s", e)
        exit_code = 1

    logger.info("%s Exiting (code=%d)", APP_NAME, exit_code)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
