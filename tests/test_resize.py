import os
import shutil
import tempfile
import unittest
from unittest import skipIf

import numpy as np
from PIL import Image

from tests._test_path import SRC, HAVE_IMAGEMAGICK  # noqa: F401
from tests._fakes import RecordingInvoker

from magickcmd.app.state import ResourceLimits
from magickcmd.core.errors import UnknownResizeOptions
from magickcmd.core.models import ScaleOptions
from magickcmd.engine.config import EngineConfig
from magickcmd.engine.invoker import Invoker
from magickcmd.ops.probe import get_image_size
from magickcmd.ops.resize import build_resize_args, expand, resize, shrink


class TestResizeArguments(unittest.TestCase):
    def test_box_mode(self):
        fake = RecordingInvoker()
        out = resize("in.jpg", "out.jpg", ScaleOptions(width=100, height=100), invoker=fake)
        self.assertEqual(out, "out.jpg")
        self.assertEqual(fake.last["command"], "convert")
        self.assertEqual(fake.last["argv"], ["in.jpg", "-resize", "100X100", "out.jpg"])

    def test_percent_mode_defaults_quality(self):
        fake = RecordingInvoker()
        resize("in.jpg", "out.jpg", {"percent": 50}, invoker=fake)
        self.assertEqual(fake.last["text"], "in.jpg -quality 100 -resize 50% out.jpg")

    def test_percent_mode_with_quality(self):
        fake = RecordingInvoker()
        resize("in.jpg", "out.jpg", percent=12.5, quality=80, invoker=fake)
        self.assertEqual(fake.last["argv"], ["in.jpg", "-quality", "80", "-resize", "12.5%", "out.jpg"])

    def test_box_wins_over_percent(self):
        b = build_resize_args("a", "b", ScaleOptions(width=10, height=20, percent=50))
        self.assertEqual(b.argv(), ["a", "-resize", "10X20", "b"])

    def test_box_mode_passes_explicit_quality(self):
        b = build_resize_args("a", "b", ScaleOptions(width=10, height=20, quality=70))
        self.assertEqual(b.argv(), ["a", "-quality", "70", "-resize", "10X20", "b"])

    def test_suffixes(self):
        b = build_resize_args("a", "b", ScaleOptions(width=10, height=10, shrink_only=True))
        self.assertEqual(b.argv()[2], "10X10>")
        self.assertEqual(b.render(), 'a -resize "10X10>" b')
        b = build_resize_args("a", "b", ScaleOptions(percent=50, expand_only=True, absolute_aspect=True))
        self.assertEqual(b.argv()[4], "50%<!")

    def test_conflicting_flags_are_passed_through(self):
        with self.assertLogs("magickcmd.ops.resize", level="WARNING"):
            b = build_resize_args("a", "b", ScaleOptions(width=1, height=1, shrink_only=True, expand_only=True))
        self.assertEqual(b.argv()[2], "1X1><")

    def test_unknown_options(self):
        fake = RecordingInvoker()
        for opts in [ScaleOptions(), ScaleOptions(width=100), ScaleOptions(height=100, quality=5)]:
            with self.subTest(opts=opts):
                with self.assertRaises(UnknownResizeOptions) as ctx:
                    resize("in.jpg", "out.jpg", opts, invoker=fake)
                self.assertIn("Unknown options for resize", str(ctx.exception))
                self.assertIs(ctx.exception.options, opts)
        self.assertEqual(fake.calls, [])

    def test_unrecognised_option_names(self):
        fake = RecordingInvoker()
        opts = {"w": 100, "h": 100}
        with self.assertRaises(UnknownResizeOptions) as ctx:
            resize("a.jpg", "b.jpg", opts, invoker=fake)
        self.assertEqual(ctx.exception.options, opts)
        self.assertIsInstance(ctx.exception.__cause__, TypeError)

        with self.assertRaises(UnknownResizeOptions):
            shrink("a.jpg", "b.jpg", {"width": 10, "height": 10}, invoker=fake, size=3)
        self.assertEqual(fake.calls, [])

    def test_filenames_with_spaces(self):
        fake = RecordingInvoker()
        resize("my photo.jpg", "out (1).jpg", width=5, height=5, invoker=fake)
        self.assertEqual(fake.last["argv"], ["my photo.jpg", "-resize", "5X5", "out (1).jpg"])
        self.assertEqual(fake.last["text"], '"my photo.jpg" -resize 5X5 "out (1).jpg"')

    def test_shrink_forces_shrink_only_and_strips_expand(self):
        fake = RecordingInvoker()
        shrink("a", "b", ScaleOptions(width=10, height=10, expand_only=True), invoker=fake)
        self.assertEqual(fake.last["argv"][2], "10X10>")

    def test_expand_forces_expand_only_and_strips_shrink(self):
        fake = RecordingInvoker()
        expand("a", "b", {"width": 10, "height": 10, "shrink_only": True}, invoker=fake)
        self.assertEqual(fake.last["argv"][2], "10X10<")

    def test_shrink_keeps_absolute_aspect(self):
        fake = RecordingInvoker()
        shrink("a", "b", percent=50, absolute_aspect=True, invoker=fake)
        self.assertEqual(fake.last["argv"][4], "50%>!")


@skipIf(not HAVE_IMAGEMAGICK, "ImageMagick not installed")
class TestResizeWithEngine(unittest.TestCase):
    """Same scenarios as a 333x500 photo run through the real engine."""

    def setUp(self):
        self.tmp = tempfile.mkdtemp(prefix="magickcmd_test_")
        self.image = os.path.join(self.tmp, "5742.jpg")
        arr = np.full((500, 333, 3), 160, dtype=np.uint8)
        arr[:250, :, 0] = 40
        Image.fromarray(arr, "RGB").save(self.image, format="JPEG", quality=95)
        self.invoker = Invoker(EngineConfig.from_env(), ResourceLimits(defaults_source=dict))

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def size(self, path):
        return get_image_size(path, invoker=self.invoker).as_dict()

    def test_resize_fits_bounding_box(self):
        orig_bytes = os.path.getsize(self.image)
        self.assertEqual(self.size(self.image), {"width": 333, "height": 500})
        self.assertEqual(os.path.getsize(self.image), orig_bytes)

        dest = os.path.join(self.tmp, "out.jpg")
        ret = resize(self.image, dest, width=100, height=100, invoker=self.invoker)
        self.assertEqual(ret, dest)
        self.assertEqual(self.size(dest), {"width": 67, "height": 100})
        self.assertEqual(os.path.getsize(self.image), orig_bytes)

    def test_resize_over_itself(self):
        ret = resize(self.image, self.image, width=100, height=100, invoker=self.invoker)
        self.assertEqual(ret, self.image)
        self.assertEqual(self.size(self.image), {"width": 67, "height": 100})

    def test_percent(self):
        dest = os.path.join(self.tmp, "half.jpg")
        resize(self.image, dest, percent=50, invoker=self.invoker)
        dims = self.size(dest)
        self.assertIn(dims["width"], (166, 167))
        self.assertEqual(dims["height"], 250)

    def test_shrink(self):
        shrink(self.image, self.image, width=1000, height=1000, invoker=self.invoker)
        self.assertEqual(self.size(self.image), {"width": 333, "height": 500})
        shrink(self.image, self.image, width=1000, height=100, invoker=self.invoker)
        self.assertEqual(self.size(self.image), {"width": 67, "height": 100})

    def test_expand(self):
        expand(self.image, self.image, width=10, height=10, invoker=self.invoker)
        self.assertEqual(self.size(self.image), {"width": 333, "height": 500})
        expand(self.image, self.image, width=1000, height=1000, invoker=self.invoker)
        self.assertEqual(self.size(self.image), {"width": 666, "height": 1000})

    def test_filename_with_shell_characters(self):
        src = os.path.join(self.tmp, "it's a (test) & more.jpg")
        shutil.copy(self.image, src)
        dest = os.path.join(self.tmp, 'out "quoted"; ls.jpg')
        resize(src, dest, width=50, height=50, invoker=self.invoker)
        self.assertEqual(self.size(dest)["height"], 50)
