"""
ASCII Component Converter — command line
Converts an image or a video into ASCII art and writes a React component
(.tsx) that renders it, static for images and animated for videos.

Usage:
  # Image -> static component on stdout
  python ascii_convert.py photo.png

  # Video -> animated component, 100 columns, 5 samples per second
  python ascii_convert.py clip.mp4 --width 100 --fps 5 -o ClipAscii.tsx

  # Single video instant, plain text only
  python ascii_convert.py clip.mp4 --still --timestamp 1.5 --text

Supports: any still image Pillow can open; MP4, MOV, AVI, MKV, WEBM via OpenCV.
At most 200 video frames are extracted (duration * fps).

Dependencies:
  pip install Pillow opencv-python
"""

import argparse
import asyncio
import logging
import os
import sys

from ascii_art import ASCII_CHARS, QUALITY_WIDTHS, image_to_ascii, load_image
from ascii_errors import AsciiArtError
from ascii_video import (
    DEFAULT_SEEK_TIMEOUT,
    FPS_OPTIONS,
    open_video,
    video_frame_to_ascii,
    video_to_ascii_frames,
)
from component_export import (
    component_name_for,
    generate_animated_react_component,
    generate_react_component,
)

VIDEO_EXTENSIONS = (".mp4", ".mov", ".avi", ".mkv", ".webm")


def print_progress(done, total):
    if done % 10 == 0 or done == total:
        print(f"  Processed {done}/{total} frames", file=sys.stderr)


async def convert_image_file(path, width, ramp=ASCII_CHARS):
    img = await load_image(path)
    return await image_to_ascii(img, width, ramp)


async def convert_video_file(path, width, fps, seek_timeout, ramp=ASCII_CHARS):
    async with open_video(path) as video:
        print(
            f"Video: {video.width}x{video.height}, {video.duration:.2f}s, "
            f"sampling {fps} frame(s) per second",
            file=sys.stderr,
        )
        return await video_to_ascii_frames(
            video, fps, width, on_progress=print_progress,
            seek_timeout=seek_timeout, ramp=ramp,
        )


async def convert_video_still(path, width, timestamp, seek_timeout, ramp=ASCII_CHARS):
    async with open_video(path) as video:
        return await video_frame_to_ascii(video, width, timestamp, seek_timeout, ramp)


def build_parser():
    parser = argparse.ArgumentParser(
        description="Convert an image or video to ASCII art and export it as a React component"
    )
    parser.add_argument("input", help="Path to an image or a video file")
    parser.add_argument("--width", type=int, default=None, help="Columns of ASCII output (overrides --quality)")
    parser.add_argument("--quality", choices=sorted(QUALITY_WIDTHS), default="m",
                        help="Width preset: s=50, m=100, l=150 (default: m)")
    parser.add_argument("--fps", type=float, default=2,
                        help=f"Video samples per second, e.g. {', '.join(map(str, FPS_OPTIONS))} (default: 2)")
    parser.add_argument("--still", action="store_true", help="Convert a single video instant instead of animating")
    parser.add_argument("--timestamp", type=float, default=0.0, help="Instant used with --still, in seconds (default: 0)")
    parser.add_argument("--seek-timeout", type=float, default=DEFAULT_SEEK_TIMEOUT,
                        help=f"Seconds to wait for each video seek (default: {DEFAULT_SEEK_TIMEOUT:g})")
    parser.add_argument("--ramp", default=ASCII_CHARS, help="Glyphs from darkest to lightest")
    parser.add_argument("--name", default=None, help="Component name (default: derived from the file name)")
    parser.add_argument("--text", action="store_true", help="Write plain ASCII instead of a component")
    parser.add_argument("-o", "--output", default=None, help="Output path (default: stdout)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    return parser


def run(args):
    """Convert args.input and return the text to write."""
    width = args.width if args.width is not None else QUALITY_WIDTHS[args.quality]
    name = args.name or component_name_for(os.path.basename(args.input))
    ext = os.path.splitext(args.input)[1].lower()

    if ext in VIDEO_EXTENSIONS and not args.still:
        frames = asyncio.run(
            convert_video_file(args.input, width, args.fps, args.seek_timeout, args.ramp)
        )
        if args.text:
            return "\n\n".join(frames) + "\n"
        return generate_animated_react_component(frames, args.fps, name)

    if ext in VIDEO_EXTENSIONS:
        ascii_art = asyncio.run(
            convert_video_still(args.input, width, args.timestamp, args.seek_timeout, args.ramp)
        )
    else:
        ascii_art = asyncio.run(convert_image_file(args.input, width, args.ramp))

    if args.text:
        return ascii_art + "\n"
    return generate_react_component(ascii_art, name)


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(message)s",
    )

    if not os.path.isfile(args.input):
        print(f"ERROR: '{args.input}' is not a valid file", file=sys.stderr)
        return 1

    try:
        output = run(args)
    except AsciiArtError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        print(f"Wrote {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
