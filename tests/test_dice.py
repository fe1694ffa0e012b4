import pytest
import dice
import die_model
import die_shapes


@pytest.fixture(scope="module")
def d6():
    return dice.die_factory("d6")(0.09, 2)


def test_die(d6):
    assert d6.model is die_shapes.shape_model("d6")
    assert d6.results == (6, 4, 5, 3, 1, 2)
    assert len(d6.geometry) == 1 + 8
    assert d6.texture.width > d6.texture.height
    assert len(d6.shape.faces) == 6
    assert (d6.rounding, d6.edge_detail) == (0.09, 2)


def test_noise_die():
    die = dice.die_factory("d4", texture="noise", seed=2)(0.05, 1)
    assert die.texture.rgba[..., 3].max() == 255


def test_bad_results():
    model = die_shapes.shape_model("d4")
    with pytest.raises(die_model.ConstructionError):
        dice.make_die(model, None, None, None, (1, 1, 2, 3))
    with pytest.raises(die_model.ConstructionError):
        dice.make_die(model, None, None, None, (1, 2, 3))


def test_bad_parameters_fail_before_building():
    calls = []

    def geometry(rounding, edge_detail):
        calls.append((rounding, edge_detail))

    model = die_shapes.shape_model("d4")
    make = dice.make_die(model, None, None, geometry, (1, 2, 3, 4))
    with pytest.raises(ValueError):
        make(0.0, 5)
    with pytest.raises(ValueError):
        make(0.1, 0)
    assert calls == []


def test_unknown_texture():
    with pytest.raises(ValueError, match="plaid"):
        dice.die_factory("d6", texture="plaid")


def test_unknown_shape():
    with pytest.raises(ValueError):
        dice.die_factory("d3")


def test_die_cache():
    cache = dice.DieCache()
    d1 = cache.get("d8", 0.05, 1)
    assert cache.get("d8", 0.05, 1) is d1
    assert len(cache) == 1
    d2 = cache.get("d8", 0.05, 2)
    assert d2 is not d1
    assert len(cache) == 2


def test_die_cache_defaults():
    cache = dice.DieCache()
    die = cache.get("d4")
    definition = die_shapes.shape_definition("d4")
    assert die.rounding == definition.rounding
    assert die.edge_detail == definition.edge_detail


def test_material_cache(d6):
    made = []

    def make_material(die):
        made.append(die)
        return object()

    materials = dice.MaterialCache()
    m1 = materials.get(d6, make_material)
    assert materials.get(d6, make_material) is m1
    assert made == [d6]
    assert len(materials) == 1
    materials.clear()
    assert len(materials) == 0
    assert materials.get(d6, make_material) is not m1
