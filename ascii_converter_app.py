"""
ASCII Component Converter — Local Web App
Upload an image or a video, get ASCII art back as JSON together with a
ready-to-paste React component.

Usage:
  python ascii_converter_app.py

Endpoints (multipart form, field "file"):
  POST /convert/image   width|quality            -> ascii, code, component_name
  POST /convert/video   width|quality, fps       -> frames, fps, code, component_name
  POST /preview/video   width|quality, timestamp -> ascii, duration, width, height

Dependencies:
  pip install flask Pillow opencv-python
"""

import asyncio
import logging
import os
import shutil
import tempfile

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ascii_art import QUALITY_WIDTHS, image_to_ascii, load_image
from ascii_errors import (
    AsciiArtError,
    CapacityExceededError,
    InvalidArgumentError,
)
from ascii_video import (
    DEFAULT_SEEK_TIMEOUT,
    HAS_CV2,
    open_video,
    video_frame_to_ascii,
    video_to_ascii_frames,
)
from component_export import (
    component_name_for,
    generate_animated_react_component,
    generate_react_component,
)

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = 200 * 1024 * 1024  # 200 MB
app.config["SEEK_TIMEOUT"] = float(os.environ.get("ASCII_SEEK_TIMEOUT", DEFAULT_SEEK_TIMEOUT))

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".tiff", ".tif", ".webp", ".gif"}
VIDEO_EXTENSIONS = {".mp4", ".mov", ".avi", ".mkv", ".webm"}

MAX_WIDTH = 500


@app.errorhandler(AsciiArtError)
def conversion_failed(e):
    if isinstance(e, CapacityExceededError):
        return jsonify(error=str(e), requested=e.requested, ceiling=e.ceiling), 400
    if isinstance(e, InvalidArgumentError):
        return jsonify(error=str(e)), 400
    logger.warning("Conversion failed: %s", e)
    return jsonify(error=str(e)), 500


@app.errorhandler(Exception)
def unexpected_failure(e):
    if isinstance(e, HTTPException):
        return e
    logger.exception("Unexpected failure")
    return jsonify(error=str(e)), 500


def _uploaded_file(allowed_extensions):
    """Return (file, ext) from the request, or an error response."""
    if "file" not in request.files:
        return None, (jsonify(error="No file uploaded"), 400)

    file = request.files["file"]
    if not file.filename:
        return None, (jsonify(error="No file selected"), 400)

    ext = os.path.splitext(file.filename)[1].lower()
    if ext not in allowed_extensions:
        return None, (jsonify(error=f"Unsupported format: {ext}"), 400)
    return (file, ext), None


def _target_width():
    quality = request.form.get("quality")
    if quality is not None and "width" not in request.form:
        if quality not in QUALITY_WIDTHS:
            raise InvalidArgumentError(f"Unknown quality: {quality}")
        return QUALITY_WIDTHS[quality]
    width = request.form.get("width", QUALITY_WIDTHS["m"], type=int)
    if width is None or width <= 0:
        raise InvalidArgumentError("width must be a positive integer")
    return min(width, MAX_WIDTH)


def _save_upload(file, ext, tmp_dir):
    input_path = os.path.join(tmp_dir, "input" + ext)
    file.save(input_path)
    return input_path


@app.route("/convert/image", methods=["POST"])
def convert_image():
    upload, error = _uploaded_file(IMAGE_EXTENSIONS)
    if error:
        return error
    file, _ = upload
    width = _target_width()

    async def run():
        img = await load_image(file.stream)
        return await image_to_ascii(img, width)

    ascii_art = asyncio.run(run())
    name = component_name_for(file.filename)
    lines = ascii_art.split("\n")
    return jsonify(
        ascii=ascii_art,
        code=generate_react_component(ascii_art, name),
        component_name=name,
        cols=width,
        rows=len(lines),
    )


@app.route("/convert/video", methods=["POST"])
def convert_video():
    if not HAS_CV2:
        return jsonify(error="OpenCV not installed. Run: pip install opencv-python"), 400

    upload, error = _uploaded_file(VIDEO_EXTENSIONS)
    if error:
        return error
    file, ext = upload
    width = _target_width()
    fps = request.form.get("fps", 2, type=float)
    if fps is None or fps <= 0:
        raise InvalidArgumentError("fps must be a positive number")

    seek_timeout = app.config["SEEK_TIMEOUT"]

    def report(done, total):
        logger.debug("Processed %d/%d frames", done, total)

    tmp_dir = tempfile.mkdtemp()
    try:
        input_path = _save_upload(file, ext, tmp_dir)

        async def run():
            async with open_video(input_path) as video:
                return await video_to_ascii_frames(
                    video, fps, width, on_progress=report, seek_timeout=seek_timeout,
                )

        frames = asyncio.run(run())
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)

    name = component_name_for(file.filename)
    return jsonify(
        frames=frames,
        fps=fps,
        frame_count=len(frames),
        code=generate_animated_react_component(frames, fps, name),
        component_name=name,
    )


@app.route("/preview/video", methods=["POST"])
def preview_video():
    """ASCII of a single instant of the video plus its duration and size."""
    if not HAS_CV2:
        return jsonify(error="OpenCV not installed"), 400

    upload, error = _uploaded_file(VIDEO_EXTENSIONS)
    if error:
        return error
    file, ext = upload
    width = _target_width()
    timestamp = request.form.get("timestamp", 0.0, type=float)

    seek_timeout = app.config["SEEK_TIMEOUT"]

    tmp_dir = tempfile.mkdtemp()
    try:
        input_path = _save_upload(file, ext, tmp_dir)

        async def run():
            async with open_video(input_path) as video:
                ascii_art = await video_frame_to_ascii(
                    video, width, timestamp, seek_timeout=seek_timeout,
                )
                return ascii_art, video.duration, video.width, video.height

        ascii_art, duration, video_width, video_height = asyncio.run(run())
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)

    return jsonify(
        ascii=ascii_art,
        duration=round(duration, 3),
        width=video_width,
        height=video_height,
        component_name=component_name_for(file.filename),
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    port = int(os.environ.get("PORT", 5000))
    print("=" * 50)
    print("  ASCII Component Converter")
    print(f"  http://localhost:{port}")
    print("  Press Ctrl+C to stop")
    print("=" * 50)
    app.run(host="0.0.0.0", debug=False, port=port)
