import asyncio
import io
import unittest
from unittest import mock

from PIL import Image

from ascii_art import (
    ASCII_CHARS,
    canvas_to_ascii,
    frames_to_ascii,
    get_luminance,
    image_to_ascii,
    load_image,
    pixel_to_char,
)
from ascii_errors import DecodeError, InvalidArgumentError, ResourceUnavailableError


def solid(width, height, color):
    return Image.new("RGBA", (width, height), color)


def broken_image():
    img = mock.Mock(spec=Image.Image)
    img.convert.side_effect = OSError("image file is truncated")
    img.load.side_effect = OSError("image file is truncated")
    return img


class LuminanceTests(unittest.TestCase):
    def test_black_is_zero(self):
        self.assertEqual(get_luminance(0, 0, 0), 0)

    def test_white_is_255(self):
        self.assertEqual(get_luminance(255, 255, 255), 255)

    def test_gray(self):
        self.assertEqual(get_luminance(128, 128, 128), 128)

    def test_green_weighs_most(self):
        self.assertEqual(get_luminance(0, 255, 0), 150)
        self.assertEqual(get_luminance(0, 0, 255), 29)


class PixelToCharTests(unittest.TestCase):
    def test_black_is_darkest(self):
        self.assertEqual(pixel_to_char(0, ASCII_CHARS), "@")

    def test_white_is_lightest(self):
        self.assertEqual(pixel_to_char(255, ASCII_CHARS), " ")

    def test_middle(self):
        mid_index = len(ASCII_CHARS) // 2
        mid_lum = (255 * mid_index) // (len(ASCII_CHARS) - 1)
        self.assertEqual(pixel_to_char(mid_lum, ASCII_CHARS), ASCII_CHARS[mid_index])

    def test_monotonic_and_covers_ramp(self):
        indices = [ASCII_CHARS.index(pixel_to_char(lum, ASCII_CHARS)) for lum in range(256)]
        self.assertEqual(indices, sorted(indices))
        self.assertEqual(set(indices), set(range(len(ASCII_CHARS))))

    def test_single_glyph_ramp(self):
        self.assertEqual(pixel_to_char(255, "#"), "#")


class CanvasToAsciiTests(unittest.TestCase):
    def test_black_over_white(self):
        img = Image.new("RGB", (2, 2), "white")
        img.putpixel((0, 0), (0, 0, 0))
        img.putpixel((1, 0), (0, 0, 0))
        self.assertEqual(canvas_to_ascii(img, 2), "@@\n  ")

    def test_checkerboard_downscale_samples_top_left(self):
        img = Image.new("RGB", (4, 4))
        for y in range(4):
            for x in range(4):
                img.putpixel((x, y), (0, 0, 0) if (x + y) % 2 == 0 else (255, 255, 255))
        self.assertEqual(canvas_to_ascii(img, 2), "@@\n@@")

    def test_grid_dimensions(self):
        img = solid(10, 7, (0, 0, 0, 255))
        lines = canvas_to_ascii(img, 4).split("\n")
        # scale 2.5 -> round(7 / 2.5) = 3 rows
        self.assertEqual(len(lines), 3)
        self.assertTrue(all(len(line) == 4 for line in lines))

    def test_no_trailing_newline(self):
        self.assertFalse(canvas_to_ascii(solid(3, 3, (0, 0, 0, 255)), 3).endswith("\n"))

    def test_transparent_renders_as_white(self):
        img = solid(2, 2, (0, 0, 0, 0))
        self.assertEqual(canvas_to_ascii(img, 2), "  \n  ")

    def test_half_transparent_black_is_mid_gray(self):
        img = solid(1, 1, (0, 0, 0, 128))
        self.assertEqual(canvas_to_ascii(img, 1), "+")

    def test_custom_ramp(self):
        img = solid(2, 1, (0, 0, 0, 0))
        self.assertEqual(canvas_to_ascii(img, 2, ramp="X."), "..")

    def test_rejects_non_positive_width(self):
        img = solid(2, 2, (0, 0, 0, 255))
        with self.assertRaises(InvalidArgumentError):
            canvas_to_ascii(img, 0)
        with self.assertRaises(ValueError):
            canvas_to_ascii(img, -3)

    def test_rejects_empty_ramp(self):
        with self.assertRaises(InvalidArgumentError):
            canvas_to_ascii(solid(2, 2, (0, 0, 0, 255)), 2, ramp="")

    def test_unreadable_buffer(self):
        with self.assertRaises(ResourceUnavailableError):
            canvas_to_ascii(broken_image(), 2)

    def test_source_is_not_mutated(self):
        img = Image.new("RGB", (4, 4), (10, 20, 30))
        canvas_to_ascii(img, 2)
        self.assertEqual(img.mode, "RGB")
        self.assertEqual(img.getpixel((0, 0)), (10, 20, 30))


class ImageToAsciiTests(unittest.TestCase):
    def test_aspect_corrected_rows(self):
        img = Image.new("RGB", (10, 10), "gray")
        lines = asyncio.run(image_to_ascii(img, 5)).split("\n")
        # round(5 * 1.0 * 0.5) rounds half up
        self.assertEqual(len(lines), 3)
        self.assertTrue(all(line == "=====" for line in lines))

    def test_wide_image_keeps_one_row(self):
        img = Image.new("RGB", (100, 1), "black")
        self.assertEqual(asyncio.run(image_to_ascii(img, 10)), "@" * 10)

    def test_decode_failure(self):
        with self.assertRaises(DecodeError):
            asyncio.run(image_to_ascii(broken_image(), 5))

    def test_load_image_from_stream(self):
        buf = io.BytesIO()
        Image.new("RGB", (8, 4), "black").save(buf, format="PNG")
        buf.seek(0)
        img = asyncio.run(load_image(buf))
        self.assertEqual(img.size, (8, 4))
        self.assertEqual(asyncio.run(image_to_ascii(img, 4)), "@@@@")

    def test_load_image_rejects_garbage(self):
        with self.assertRaises(DecodeError):
            asyncio.run(load_image(io.BytesIO(b"not an image")))

    def test_dark_16bit_png_stays_dark(self):
        buf = io.BytesIO()
        Image.new("I;16", (4, 4), 1000).save(buf, format="PNG")
        buf.seek(0)
        img = asyncio.run(load_image(buf))
        self.assertEqual(asyncio.run(image_to_ascii(img, 4)), "@@@@\n@@@@")

    def test_bright_16bit_image_is_blank(self):
        img = Image.new("I;16", (4, 4), 65535)
        self.assertEqual(canvas_to_ascii(img, 2), "  \n  ")


class FramesToAsciiTests(unittest.TestCase):
    def test_preserves_order(self):
        frames = [solid(4, 4, color) for color in ((0, 0, 0, 255), (128, 128, 128, 255), (255, 255, 255, 255))]
        self.assertEqual(frames_to_ascii(frames, 2), ["@@", "==", "  "])

    def test_progress_per_frame(self):
        calls = []
        frames = [solid(2, 2, (0, 0, 0, 255)) for _ in range(3)]
        frames_to_ascii(frames, 2, on_progress=lambda done, total: calls.append((done, total)))
        self.assertEqual(calls, [(1, 3), (2, 3), (3, 3)])

    def test_without_progress(self):
        result = frames_to_ascii([solid(2, 2, (0, 0, 0, 255))], 2)
        self.assertEqual(len(result), 1)

    def test_empty_batch(self):
        calls = []
        self.assertEqual(frames_to_ascii([], 10, on_progress=lambda *a: calls.append(a)), [])
        self.assertEqual(calls, [])

    def test_failure_aborts_batch(self):
        calls = []
        frames = [solid(2, 2, (0, 0, 0, 255)), broken_image(), solid(2, 2, (0, 0, 0, 255))]
        with self.assertRaises(ResourceUnavailableError):
            frames_to_ascii(frames, 2, on_progress=lambda done, total: calls.append(done))
        self.assertEqual(calls, [1])


if __name__ == "__main__":
    unittest.main()
