import asyncio
import math
import unittest

from src.torus.engine import (
    BLANK,
    LUMINANCE_PALETTE,
    FrameBuffers,
    ProjectedSample,
    Rotation,
    RotationTrig,
    TorusRenderer,
    glyph_for_luminance,
    sweep_angles,
)


FACE_ON_FRAME = (
    "                                        ",
    "                                        ",
    "                                        ",
    "                                        ",
    "                                        ",
    "               $$$$$$$$$$               ",
    "            ###*!!!!!!!!*###            ",
    "           **!!!!==;;;=!!!!**           ",
    "          !*!!!=:-....-:=!!!*!          ",
    "          =!!!=;-.    .-:=!!*!          ",
    "          =!*****!    !*!**!!=          ",
    "          :!***##$@@@$$##***!;          ",
    "           :=****##$###****=:           ",
    "            .:=!********!=:.            ",
    "               .-~:;;:~-.               ",
    "                                        ",
    "                                        ",
    "                                        ",
    "                                        ",
    "                                        ",
)

TILTED_FRAME = (
    "                                        ",
    "                                        ",
    "                                        ",
    "                                        ",
    "                 @@@                    ",
    "            ##########$$$$              ",
    "           ==!=!*!!!!****####           ",
    "           ;;;;;;;===!!***!!**          ",
    "           -,,,----~::;;===!!!=         ",
    "           .........,,-~::;;;==;        ",
    "            .....,!$....,--~~:;:        ",
    "              .,,:!!;:.....,---         ",
    "                 .,::~,.......          ",
    "                                        ",
    "                                        ",
    "                                        ",
    "                                        ",
    "                                        ",
    "                                        ",
    "                                        ",
)


class ProjectionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.renderer = TorusRenderer(40, 20, theta_step=0.07, phi_step=0.02)

    def test_front_of_ring_projects_right_of_centre(self) -> None:
        trig = RotationTrig.from_rotation(Rotation(0.0, 0.0))
        sample = self.renderer.project(0.0, 0.0, trig)
        self.assertEqual((sample.x, sample.y), (29, 10))
        self.assertAlmostEqual(sample.depth, 0.2)
        self.assertEqual(sample.luminance, 0)
        self.assertIsInstance(sample, ProjectedSample)

    def test_projection_ordering(self) -> None:
        trig = RotationTrig.from_rotation(Rotation(0.0, 0.0))
        left = self.renderer.project(0.0, math.pi, trig)
        right = self.renderer.project(0.0, 0.0, trig)
        self.assertLess(left.x, right.x)

    def test_depth_positive_over_full_grid(self) -> None:
        thetas = sweep_angles(0.07)
        phis = sweep_angles(0.02)
        for rotation in (Rotation(0.0, 0.0), Rotation(math.pi / 2, 0.3), Rotation(4.0, 2.5), Rotation(-1.2, 7.0)):
            trig = RotationTrig.from_rotation(rotation)
            for theta in thetas:
                for phi in phis:
                    depth = self.renderer.project(theta, phi, trig).depth
                    self.assertGreater(depth, 0.0)
                    self.assertTrue(math.isfinite(depth))

    def test_viewer_too_close_rejected(self) -> None:
        with self.assertRaises(ValueError):
            TorusRenderer(viewer_distance=3.0, major_offset=2.0)
        TorusRenderer(viewer_distance=3.2, major_offset=2.0)

    def test_negative_offset_guarded_by_magnitude(self) -> None:
        with self.assertRaises(ValueError):
            TorusRenderer(viewer_distance=3.0, major_offset=-2.0)
        renderer = TorusRenderer(viewer_distance=3.2, major_offset=-2.0)
        trig = RotationTrig.from_rotation(Rotation(math.pi / 2, 0.0))
        for theta in sweep_angles(0.07):
            for phi in sweep_angles(0.02):
                self.assertGreater(renderer.project(theta, phi, trig).depth, 0.0)

    def test_invalid_dimensions_and_steps_rejected(self) -> None:
        with self.assertRaises(ValueError):
            TorusRenderer(0, 20)
        with self.assertRaises(ValueError):
            TorusRenderer(40, 20, phi_step=0.0)

    def test_sweep_angles_start_at_zero_and_stay_below_tau(self) -> None:
        angles = sweep_angles(0.07)
        self.assertEqual(angles[0], 0.0)
        self.assertLess(angles[-1], math.tau)
        self.assertEqual(len(angles), 90)


class LuminanceTests(unittest.TestCase):
    def test_mapping(self) -> None:
        expected = {
            -10: ".",
            -1: ".",
            0: ".",
            1: ",",
            12: ".",
            23: "@",
        }
        for luminance, glyph in expected.items():
            with self.subTest(luminance=luminance):
                self.assertEqual(glyph_for_luminance(luminance), glyph)

    def test_negative_never_wraps_to_bright_glyphs(self) -> None:
        for luminance in range(-30, 1):
            self.assertEqual(glyph_for_luminance(luminance), LUMINANCE_PALETTE[0])


class FrameBufferTests(unittest.TestCase):
    def test_reset_clears_every_cell(self) -> None:
        buffers = FrameBuffers(6, 3)
        buffers.plot(2, 1, 0.4, "#")
        buffers.plot(5, 2, 0.9, "@")
        buffers.reset()
        self.assertEqual(buffers.depth, [0.0] * 18)
        self.assertEqual(buffers.glyphs, [BLANK] * 18)

    def test_nearest_sample_wins_in_either_order(self) -> None:
        for order in (((0.2, "."), (0.5, "@")), ((0.5, "@"), (0.2, "."))):
            buffers = FrameBuffers(4, 4)
            for depth, glyph in order:
                buffers.plot(1, 2, depth, glyph)
            self.assertEqual(buffers.glyph_at(1, 2), "@")
            self.assertEqual(buffers.depth_at(1, 2), 0.5)

    def test_equal_depth_keeps_first_sample(self) -> None:
        buffers = FrameBuffers(4, 4)
        self.assertTrue(buffers.plot(0, 0, 0.3, "a"))
        self.assertFalse(buffers.plot(0, 0, 0.3, "b"))
        self.assertEqual(buffers.glyph_at(0, 0), "a")

    def test_out_of_bounds_samples_are_discarded(self) -> None:
        buffers = FrameBuffers(4, 3)
        for x, y in ((4, 0), (0, 3), (4, 3), (-1, 0), (0, -1)):
            with self.subTest(x=x, y=y):
                self.assertFalse(buffers.plot(x, y, 1.0, "@"))
        self.assertEqual(buffers.glyphs, [BLANK] * 12)
        self.assertEqual(buffers.depth, [0.0] * 12)

    def test_merge_keeps_nearest(self) -> None:
        first = FrameBuffers(2, 1)
        second = FrameBuffers(2, 1)
        first.plot(0, 0, 0.5, "a")
        first.plot(1, 0, 0.1, "b")
        second.plot(0, 0, 0.5, "c")
        second.plot(1, 0, 0.4, "d")
        first.merge(second)
        self.assertEqual(first.rows(), ["ad"])

    def test_merge_rejects_mismatched_sizes(self) -> None:
        with self.assertRaises(ValueError):
            FrameBuffers(2, 2).merge(FrameBuffers(3, 2))


class RenderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.renderer = TorusRenderer(40, 20, theta_step=0.07, phi_step=0.02)

    def test_render_is_deterministic(self) -> None:
        first = self.renderer.render(Rotation(0.0, 0.0)).to_text()
        second = self.renderer.render(Rotation(0.0, 0.0)).to_text()
        self.assertEqual(first, second)

    def test_face_on_frame_matches_reference(self) -> None:
        frame = self.renderer.render(Rotation(0.0, 0.0))
        self.assertEqual(frame.rows(), list(FACE_ON_FRAME))
        self.assertEqual(frame.to_text(), "\n".join(FACE_ON_FRAME))

    def test_tilted_frame_matches_reference(self) -> None:
        frame = self.renderer.render(Rotation(1.0, 0.5))
        self.assertEqual(frame.rows(), list(TILTED_FRAME))

    def test_frame_shape_and_glyphs(self) -> None:
        frame = self.renderer.render(Rotation(0.0, 0.0))
        rows = frame.rows()
        self.assertEqual(len(rows), 20)
        self.assertTrue(all(len(row) == 40 for row in rows))
        self.assertTrue(set(frame.glyphs) <= set(LUMINANCE_PALETTE + BLANK))
        self.assertGreater(sum(1 for glyph in frame.glyphs if glyph != BLANK), 0)

    def test_face_on_torus_has_empty_hole(self) -> None:
        frame = self.renderer.render(Rotation(0.0, 0.0))
        for x, y in ((19, 9), (20, 9), (19, 10), (20, 10)):
            self.assertEqual(frame.glyph_at(x, y), BLANK)
        self.assertNotEqual(frame.glyph_at(29, 10), BLANK)

    def test_reused_buffers_are_reset(self) -> None:
        buffers = self.renderer.new_buffers()
        self.renderer.render(Rotation(1.3, 0.7), buffers)
        reused = self.renderer.render(Rotation(0.0, 0.0), buffers).to_text()
        fresh = self.renderer.render(Rotation(0.0, 0.0)).to_text()
        self.assertEqual(reused, fresh)

    def test_buffers_of_other_size_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.renderer.render(Rotation(), FrameBuffers(10, 10))

    def test_async_render_matches_sync(self) -> None:
        rotation = Rotation(1.0, 0.5)
        expected = self.renderer.render(rotation)
        for chunks in (1, 3, 7):
            with self.subTest(chunks=chunks):
                result = asyncio.run(self.renderer.render_async(rotation, chunks=chunks))
                self.assertEqual(result.glyphs, expected.glyphs)
                self.assertEqual(result.depth, expected.depth)


class RotationTests(unittest.TestCase):
    def test_rotation_advances_by_fixed_increments(self) -> None:
        rotation = Rotation()
        for _ in range(50):
            rotation = rotation.advanced(0.07, 0.03)
        self.assertAlmostEqual(rotation.a, 50 * 0.07)
        self.assertAlmostEqual(rotation.b, 50 * 0.03)


if __name__ == "__main__":
    unittest.main()
