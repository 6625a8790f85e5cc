"""Unit tests for the Whitted tracer.

Tests cover:
- Background color for rays that escape the scene
- Fresnel-weighted mirror reflection
- Emissive spheres and direct lighting with hard shadows
- Recursion bound and trace statistics
- Transparent spheres, including total internal reflection
- Max depth configuration
"""

import math

import pytest


@pytest.fixture
def fresh_scene():
    """Create a fresh SceneManager for each test."""
    from src.whitted.scene.manager import SceneManager

    scene = SceneManager()
    yield scene
    scene.clear()


class TestBackground:
    """Tests for rays that hit nothing."""

    @pytest.mark.parametrize("depth", [0, 3, 5, 7])
    def test_empty_scene_returns_background(self, fresh_scene, depth):
        """Test that any ray in an empty scene returns the background."""
        from src.whitted.core.tracer import BACKGROUND_COLOR, trace

        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), fresh_scene, depth=depth)
        assert color == pytest.approx(BACKGROUND_COLOR)

    def test_background_is_uniform(self, fresh_scene):
        """Test that the background does not depend on direction."""
        from src.whitted.core.tracer import trace

        up = trace((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), fresh_scene)
        down = trace((0.0, 0.0, 0.0), (0.0, -1.0, 0.0), fresh_scene)
        assert up == pytest.approx((2.0, 2.0, 2.0))
        assert down == pytest.approx((2.0, 2.0, 2.0))

    def test_negative_depth_rejected(self, fresh_scene):
        """Test that a negative start depth is rejected."""
        from src.whitted.core.tracer import trace

        with pytest.raises(ValueError):
            trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), fresh_scene, depth=-1)


class TestSpecular:
    """Tests for the reflection / refraction branch."""

    def test_head_on_mirror_uses_fresnel_floor(self, fresh_scene):
        """Test that a head-on mirror reflects 10 percent of the background."""
        from src.whitted.core.tracer import get_trace_stats, trace

        fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, (1.0, 1.0, 1.0), reflection=1.0)
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), fresh_scene)

        # fresnel = mix(0, 1, 0.1) = 0.1; reflected ray escapes to background
        assert color == pytest.approx((0.2, 0.2, 0.2), abs=1e-5)
        stats = get_trace_stats()
        assert stats.ray_count == 2
        assert stats.deepest_depth == 1

    def test_mirror_tint(self, fresh_scene):
        """Test that reflected light is tinted by the surface color."""
        from src.whitted.core.tracer import trace

        fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, (1.0, 0.5, 0.0), reflection=1.0)
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), fresh_scene)

        assert color == pytest.approx((0.2, 0.1, 0.0), abs=1e-5)

    def test_mirror_at_depth_limit_is_shaded_diffuse(self, fresh_scene):
        """Test that a mirror hit at the depth limit spawns no secondary rays."""
        from src.whitted.core.tracer import MAX_RAY_DEPTH, get_trace_stats, trace

        fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, (1.0, 1.0, 1.0), reflection=1.0)
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), fresh_scene, depth=MAX_RAY_DEPTH)

        # No lights: diffuse shading is black
        assert color == pytest.approx((0.0, 0.0, 0.0))
        assert get_trace_stats().ray_count == 1

    def test_facing_mirrors_stop_at_max_depth(self, fresh_scene):
        """Test that two facing mirrors terminate at the depth limit."""
        from src.whitted.core.tracer import MAX_RAY_DEPTH, get_trace_stats, trace

        fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, (1.0, 1.0, 1.0), reflection=1.0)
        fresh_scene.add_sphere((0.0, 0.0, 5.0), 1.0, (1.0, 1.0, 1.0), reflection=1.0)
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), fresh_scene)

        assert color == pytest.approx((0.0, 0.0, 0.0))
        stats = get_trace_stats()
        assert stats.deepest_depth == MAX_RAY_DEPTH
        assert stats.ray_count == MAX_RAY_DEPTH + 1

    def test_max_depth_zero_disables_recursion(self, fresh_scene):
        """Test that max depth 0 shades every surface as diffuse."""
        from src.whitted.core.tracer import get_trace_stats, set_max_depth, trace

        set_max_depth(0)
        fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, (1.0, 1.0, 1.0), reflection=1.0)
        trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), fresh_scene)

        stats = get_trace_stats()
        assert stats.ray_count == 1
        assert stats.deepest_depth == 0

    def test_transparent_sphere_head_on(self, fresh_scene):
        """Test a glass sphere seen head-on: grey, bounded by the background."""
        from src.whitted.core.tracer import trace

        fresh_scene.add_sphere(
            (0.0, 0.0, -5.0), 1.0, (1.0, 1.0, 1.0), reflection=1.0, transparency=1.0
        )
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), fresh_scene)

        assert color[0] == pytest.approx(color[1])
        assert color[1] == pytest.approx(color[2])
        assert 0.0 < color[0] <= 2.0 + 1e-5

    def test_total_internal_reflection_is_finite(self, fresh_scene):
        """Test that a grazing ray inside a glass sphere stays finite."""
        from src.whitted.core.tracer import trace

        fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, (1.0, 1.0, 1.0), transparency=1.0)
        color = trace((0.0, 0.95, -5.0), (0.0, 0.0, -1.0), fresh_scene)

        for channel in color:
            assert math.isfinite(channel)
            assert channel >= 0.0


class TestDiffuse:
    """Tests for direct lighting and shadows."""

    def _lit_scene(self, scene, with_occluder):
        scene.add_sphere((0.0, 0.0, -5.0), 1.0, (1.0, 1.0, 1.0))
        scene.add_light((0.0, 0.0, 5.0), 0.5, emission=(3.0, 3.0, 3.0))
        if with_occluder:
            scene.add_sphere((0.0, 0.0, 2.5), 1.0, (1.0, 1.0, 1.0))

    def test_lit_diffuse_sphere(self, fresh_scene):
        """Test Lambertian lighting facing the light straight on."""
        from src.whitted.core.tracer import get_trace_stats, trace

        self._lit_scene(fresh_scene, with_occluder=False)
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), fresh_scene)

        assert color == pytest.approx((3.0, 3.0, 3.0), abs=1e-4)
        # Shadow rays are not counted
        assert get_trace_stats().ray_count == 1

    def test_occluded_diffuse_sphere_is_black(self, fresh_scene):
        """Test that a blocked light contributes nothing."""
        from src.whitted.core.tracer import trace

        self._lit_scene(fresh_scene, with_occluder=True)
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), fresh_scene)

        assert color == (0.0, 0.0, 0.0)

    def test_diffuse_tint(self, fresh_scene):
        """Test that lighting is multiplied by the surface color."""
        from src.whitted.core.tracer import trace

        fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, (0.5, 0.25, 0.0))
        fresh_scene.add_light((0.0, 0.0, 5.0), 0.5, emission=(2.0, 2.0, 2.0))
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), fresh_scene)

        assert color == pytest.approx((1.0, 0.5, 0.0), abs=1e-4)

    def test_light_behind_surface_contributes_nothing(self, fresh_scene):
        """Test the max(0, n.l) clamp for a light behind the shaded point."""
        from src.whitted.core.tracer import trace

        fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, (1.0, 1.0, 1.0))
        fresh_scene.add_light((0.0, 0.0, -20.0), 0.5, emission=(3.0, 3.0, 3.0))
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), fresh_scene)

        assert color == pytest.approx((0.0, 0.0, 0.0))

    def test_emission_is_added(self, fresh_scene):
        """Test that a sphere seen directly shows its own emission."""
        from src.whitted.core.tracer import trace

        fresh_scene.add_light((0.0, 0.0, -5.0), 1.0, emission=(0.5, 0.25, 0.125))
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), fresh_scene)

        assert color == pytest.approx((0.5, 0.25, 0.125), abs=1e-6)


class TestMaxDepthConfig:
    """Tests for set_max_depth / get_max_depth."""

    def test_default_depth(self):
        """Test the default recursion limit."""
        from src.whitted.core.tracer import MAX_RAY_DEPTH, get_max_depth

        assert get_max_depth() == MAX_RAY_DEPTH == 5

    def test_set_and_get(self):
        """Test that a valid limit is stored."""
        from src.whitted.core.tracer import get_max_depth, set_max_depth

        set_max_depth(3)
        assert get_max_depth() == 3

    @pytest.mark.parametrize("depth", [-1, 9, 100])
    def test_invalid_depth(self, depth):
        """Test that limits outside the supported range are rejected."""
        from src.whitted.core.tracer import set_max_depth

        with pytest.raises(ValueError):
            set_max_depth(depth)

    def test_stats_reset(self, fresh_scene):
        """Test that reset_trace_stats zeroes the counters."""
        from src.whitted.core.tracer import get_trace_stats, reset_trace_stats, trace

        trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), fresh_scene)
        assert get_trace_stats().ray_count == 1
        reset_trace_stats()
        stats = get_trace_stats()
        assert stats.ray_count == 0
        assert stats.deepest_depth == 0
