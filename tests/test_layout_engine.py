"""Tests for the layout engine: determinism, jitter draw order, z-order and collisions."""
import pytest

from layout.engine import (
    LayoutEngine,
    check_collisions,
    constrain_layout,
    draw_jitter,
    find_safe_area_violations,
    is_colliding,
)
from layout.rng import SeededRandom, make_seed
from layout.templates import resolve_template
from models.layout import (
    CanvasSpec,
    DecorationElement,
    ImageElement,
    PageLayout,
    TextElement,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _image(id="img", x=100.0, y=100.0, width=50.0, height=50.0, z_index=1) -> ImageElement:
    return ImageElement(id=id, x=x, y=y, width=width, height=height, z_index=z_index, url="img://x")


def _layout(*elements) -> PageLayout:
    return PageLayout(
        canvas=CanvasSpec(width=3600, height=2400, margin=150),
        elements=list(elements),
        seed=0,
        template="hero_spread",
    )


def _hero(page_number=3, narration="Hello!", url="img://x", revision=0) -> PageLayout:
    return LayoutEngine("b1", page_number, revision).generate_layout("hero_spread", narration, url)


# ---------------------------------------------------------------------------
# generate_layout
# ---------------------------------------------------------------------------

class TestGenerateLayout:
    def test_hero_spread_scenario(self):
        layout = _hero()
        assert [e.type for e in layout.elements] == ["image", "text"]
        image, text = layout.elements
        assert text.content == "Hello!"
        assert image.z_index == 2 and text.z_index == 3
        for e in layout.elements:
            assert 0 <= e.x <= 3600
            assert 0 <= e.y <= 2400

    def test_seed_and_metadata(self):
        layout = _hero()
        assert layout.seed == 2968053
        assert layout.template == "hero_spread"
        assert layout.page_number == 3
        assert layout.revision == 0
        assert (layout.canvas.width, layout.canvas.height) == (3600, 2400)

    def test_first_draw_is_image_dx(self):
        image = _hero().element("main_image")
        dx = -0.03 + (21610 / 233280) * 0.06
        assert image.x == pytest.approx((0.5 + dx) * 3600)

    def test_image_draws_in_fixed_order(self):
        rng = SeededRandom(make_seed("b1", 3))
        dx = -0.03 + rng.next() * 0.06
        dy = -0.02 + rng.next() * 0.04
        scale = 0.98 + rng.next() * 0.04
        rotation = -2 + rng.next() * 4

        image = _hero().element("main_image")
        assert image.x == pytest.approx((0.5 + dx) * 3600)
        assert image.y == pytest.approx((0.45 + dy) * 2400)
        assert image.width == pytest.approx(0.65 * 3600 * scale)
        assert image.height == pytest.approx(0.65 * 2400 * scale)
        assert image.rotation_deg == pytest.approx(rotation)

    def test_text_draws_follow_image_draws(self):
        rng = SeededRandom(make_seed("b1", 3))
        for _ in range(4):
            rng.next()
        dx = -0.02 + rng.next() * 0.04
        dy = -0.01 + rng.next() * 0.02
        rotation = -1 + rng.next() * 2

        text = _hero().element("narration")
        assert text.x == pytest.approx((0.5 + dx) * 3600)
        assert text.y == pytest.approx((0.85 + dy) * 2400)
        assert text.rotation_deg == pytest.approx(rotation)
        # Text frames never scale
        assert text.width == pytest.approx(0.7 * 3600)
        assert text.height == pytest.approx(0.15 * 2400)

    def test_text_without_image_uses_first_draws(self):
        rng = SeededRandom(make_seed("b1", 3))
        dx = -0.02 + rng.next() * 0.04
        text = _hero(url="").element("narration")
        assert text.x == pytest.approx((0.5 + dx) * 3600)

    def test_text_carries_frame_style(self):
        text = _hero().element("narration")
        assert text.style.font_family == "Patrick Hand"
        assert text.style.text_align == "center"
        assert text.style.line_height == 1.4

    def test_landscape_page_ignores_narration(self):
        layout = LayoutEngine("b1", 1).generate_layout("landscape_page", "Hello!", "img://x")
        assert [e.id for e in layout.elements] == ["page_image"]
        image = layout.elements[0]
        assert (image.x, image.y, image.width, image.height) == (768, 512, 1536, 1024)


class TestMissingContent:
    def test_no_illustration_omits_image(self):
        layout = _hero(url="")
        assert [e.type for e in layout.elements] == ["text"]

    def test_empty_narration_omits_text(self):
        layout = _hero(narration="")
        assert [e.type for e in layout.elements] == ["image"]

    def test_nothing_to_place(self):
        assert _hero(narration="", url="").elements == []


class TestTemplateFallback:
    def test_unknown_template_uses_hero_spread(self):
        layout = LayoutEngine("b1", 3).generate_layout("does_not_exist", "Hello!", "img://x")
        assert layout.template == "hero_spread"
        assert layout.model_dump() == _hero().model_dump()


class TestDeterminism:
    def test_fresh_engines_identical(self):
        assert _hero().model_dump_json() == _hero().model_dump_json()

    def test_every_template_deterministic(self):
        from layout.templates import template_names
        for name in template_names():
            a = LayoutEngine("book-x", 5).generate_layout(name, "Text", "img://y")
            b = LayoutEngine("book-x", 5).generate_layout(name, "Text", "img://y")
            assert a.model_dump_json() == b.model_dump_json()

    def test_page_number_changes_jitter(self):
        assert _hero(page_number=3).element("main_image").x != _hero(page_number=4).element("main_image").x

    def test_revision_changes_jitter(self):
        first, second = _hero(revision=0), _hero(revision=1)
        assert first.seed != second.seed
        assert first.element("main_image").x != second.element("main_image").x

    def test_template_not_mutated(self):
        before = resolve_template("hero_spread").model_dump()
        _hero()
        assert resolve_template("hero_spread").model_dump() == before


class TestZOrder:
    @pytest.mark.parametrize("page_number", range(1, 11))
    def test_elements_sorted_by_z_index(self, page_number):
        for name in ("hero_spread", "action_focus", "collage", "closing_spread"):
            layout = LayoutEngine("b1", page_number).generate_layout(name, "Hi", "img://x")
            z = [e.z_index for e in layout.elements]
            assert z == sorted(z)


class TestDrawJitter:
    def test_frame_jitter_draws_three_values(self):
        frame = resolve_template("hero_spread").text_frames[0]
        rng, reference = SeededRandom(5), SeededRandom(5)
        result = draw_jitter(rng, frame.jitter)
        for _ in range(3):
            reference.next()
        assert result.scale == 1.0
        assert rng.next() == reference.next()

    def test_slot_jitter_draws_four_values(self):
        slot = resolve_template("hero_spread").image_slots[0]
        rng, reference = SeededRandom(5), SeededRandom(5)
        draw_jitter(rng, slot.jitter)
        for _ in range(4):
            reference.next()
        assert rng.next() == reference.next()


# ---------------------------------------------------------------------------
# Collision detection
# ---------------------------------------------------------------------------

class TestIsColliding:
    def test_identical_centres_collide(self):
        assert is_colliding(_image("a"), _image("b"))

    def test_far_apart_do_not_collide(self):
        assert not is_colliding(_image("a", x=0), _image("b", x=10000))

    def test_touching_edges_count(self):
        assert is_colliding(_image("a", x=0, width=10), _image("b", x=10, width=10))

    def test_separated_vertically(self):
        assert not is_colliding(_image("a", y=0, height=10), _image("b", y=11, height=10))

    def test_symmetric(self):
        pairs = [
            (_image("a", x=0), _image("b", x=40)),
            (_image("a", x=0), _image("b", x=60)),
            (_image("a", y=0, height=200), _image("b", y=150, width=5)),
        ]
        for a, b in pairs:
            assert is_colliding(a, b) == is_colliding(b, a)

    def test_element_with_itself(self):
        e = _image()
        assert is_colliding(e, e)

    def test_zero_size_does_not_crash(self):
        a = _image("a", width=0, height=0)
        assert is_colliding(a, a)

    def test_rotation_ignored(self):
        a = _image("a", x=0, width=10)
        b = ImageElement(id="b", x=12, y=100, width=10, height=50, rotation_deg=45, url="img://x")
        assert not is_colliding(a, b)


class TestCheckCollisions:
    def test_overlapping_images(self):
        assert check_collisions(_layout(_image("a"), _image("b")))

    def test_far_apart_images(self):
        assert not check_collisions(_layout(_image("a", x=0), _image("b", x=10000)))

    def test_single_element(self):
        assert not check_collisions(_layout(_image()))

    def test_decorations_are_exempt(self):
        deco = DecorationElement(id="star", x=100, y=100, width=50, height=50)
        assert not check_collisions(_layout(_image("a"), deco))

    def test_image_and_text(self):
        text = TextElement(id="t", x=100, y=100, width=10, height=10, content="Hi")
        assert check_collisions(_layout(_image("a"), text))

    def test_engine_method_matches_function(self):
        layout = _hero()
        assert LayoutEngine("b1", 3).check_collisions(layout) == check_collisions(layout)


class TestSafeArea:
    def test_element_inside(self):
        assert find_safe_area_violations(_layout(_image(x=1800, y=1200))) == []

    def test_element_in_margin(self):
        assert find_safe_area_violations(_layout(_image("edge", x=10, y=1200))) == ["edge"]


def _text(id="t", x=1800.0, y=1200.0, width=200.0, height=100.0) -> TextElement:
    return TextElement(id=id, x=x, y=y, width=width, height=height, content="Hi")


def _spread(*elements) -> PageLayout:
    return PageLayout(
        canvas=CanvasSpec(width=3600, height=2400, margin=150, gutter=118),
        elements=list(elements),
        seed=0,
        template="hero_spread",
    )


class TestConstrainLayout:
    def test_clamped_into_top_left(self):
        element = constrain_layout(_layout(_image(x=10, y=20, width=100, height=100))).elements[0]
        assert (element.x, element.y) == (200, 200)

    def test_clamped_into_bottom_right(self):
        element = constrain_layout(_layout(_image(x=3590, y=2390, width=100, height=100))).elements[0]
        assert (element.x, element.y) == (3400, 2200)

    def test_inside_untouched(self):
        layout = _layout(_image(x=1800, y=1200))
        assert constrain_layout(layout) == layout

    def test_oversized_pins_to_low_edge(self):
        element = constrain_layout(_layout(_image(x=1800, y=1200, width=4000))).elements[0]
        assert element.x == 150 + 2000

    def test_text_pushed_left_of_gutter(self):
        # Gutter spans 1741..1859; mostly-left text moves left
        element = constrain_layout(_spread(_text(x=1700))).elements[0]
        assert element.x == 1741 - 100 - 20

    def test_text_pushed_right_of_gutter(self):
        element = constrain_layout(_spread(_text(x=1900))).elements[0]
        assert element.x == 1859 + 100 + 20

    def test_text_clear_of_gutter_untouched(self):
        element = constrain_layout(_spread(_text(x=1000))).elements[0]
        assert element.x == 1000

    def test_images_may_cross_gutter(self):
        element = constrain_layout(_spread(_image(x=1800, y=1200, width=400))).elements[0]
        assert element.x == 1800

    def test_clamp_applied_after_gutter_push(self):
        # Centred wide text would land past the margin; the clamp pulls it back
        element = constrain_layout(_spread(_text(x=1800, width=2400))).elements[0]
        assert element.x == 150 + 1200

    def test_no_gutter_means_no_push(self):
        element = constrain_layout(_layout(_text(x=1800))).elements[0]
        assert element.x == 1800

    def test_decorations_untouched(self):
        deco = DecorationElement(id="star", x=5, y=5, width=50, height=50)
        assert constrain_layout(_layout(deco)).elements[0] == deco

    def test_input_not_modified(self):
        layout = _layout(_image(x=10, y=20))
        constrain_layout(layout)
        assert (layout.elements[0].x, layout.elements[0].y) == (10, 20)

    def test_generate_layout_is_unconstrained(self):
        layout = LayoutEngine("b1", 3).generate_layout("hero_spread", "Hello!", "img://x")
        again = LayoutEngine("b1", 3).generate_layout("hero_spread", "Hello!", "img://x")
        assert layout == again
        assert constrain_layout(layout).seed == layout.seed
        assert [e.id for e in constrain_layout(layout).elements] == [e.id for e in layout.elements]
