import logging
import bevel
import die_model
import die_shapes
import die_texture

logger = logging.getLogger(__name__)

TEXTURES = ("labels", "noise")


# Everything needed to show and simulate one kind of die. Dice are never
# modified after they are made, and are shared by every rolled object.
class Die:
    def __init__(
        self, model, shape, texture, geometry, results, rounding, edge_detail
    ):
        self.model = model
        self.shape = shape
        self.texture = texture
        self.geometry = geometry
        self.results = results
        self.rounding = rounding
        self.edge_detail = edge_detail

    def __repr__(self):
        return (
            f"Die({len(self.model.faces)} faces, rounding={self.rounding}, "
            f"edge_detail={self.edge_detail})"
        )


# results maps each face index to a value, and every value from 1 to the
# number of faces must be used exactly once.
def check_results(model, results):
    if sorted(results) != list(range(1, len(model.faces) + 1)):
        raise die_model.ConstructionError(
            f"Results {list(results)} do not number {len(model.faces)} faces"
        )


# Returns a function of (rounding, edge_detail) that makes a Die.
# texture_fn turns the texture layout into a Texture, and geometry_fn
# makes (layout, surfaces) from the two parameters.
# Making a die is expensive; callers should keep the dice they make.
def make_die(model, shape, texture_fn, geometry_fn, results):
    results = tuple(results)
    check_results(model, results)

    def make(rounding, edge_detail):
        bevel.check_parameters(rounding, edge_detail)
        info, geometry = geometry_fn(rounding, edge_detail)
        texture = texture_fn(info)
        die = Die(
            model, shape, texture, tuple(geometry), results, rounding, edge_detail
        )
        logger.debug("Made %s", die)
        return die

    return make


def texture_function(definition, texture="labels", seed=0):
    match texture:
        case "labels":
            return die_texture.label_texture(definition)
        case "noise":
            return die_texture.noise_texture(seed)
        case _:
            raise ValueError(
                f'Unknown texture "{texture}", expected one of {", ".join(TEXTURES)}'
            )


# The die maker for one of the shapes in die_shapes.
def die_factory(name, texture="labels", seed=0):
    definition = die_shapes.shape_definition(name)
    model = die_shapes.shape_model(name)
    return make_die(
        model,
        die_model.hull_shape(model),
        texture_function(definition, texture, seed),
        bevel.define_geometry(model),
        definition.results,
    )


# Keeps every die made, so that each combination of shape and parameters is
# only made once.
class DieCache:
    def __init__(self, seed=0):
        self.seed = seed
        self.dice = {}

    def __len__(self):
        return len(self.dice)

    # Parameters left as None take the defaults of the shape.
    def get(self, name, rounding=None, edge_detail=None, texture="labels"):
        definition = die_shapes.shape_definition(name)
        if rounding is None:
            rounding = definition.rounding
        if edge_detail is None:
            edge_detail = definition.edge_detail

        key = (name, rounding, edge_detail, texture)
        die = self.dice.get(key)
        if die is None:
            die = die_factory(name, texture, self.seed)(rounding, edge_detail)
            self.dice[key] = die
        return die

    # The default die of every shape.
    def all(self, texture="labels"):
        return {name: self.get(name, texture=texture) for name in die_shapes.SHAPES}


# Materials made by the renderer, one per die, reused by every object that
# shows that die. The renderer is handed this cache rather than keeping
# its own.
class MaterialCache:
    def __init__(self):
        self.materials = {}

    def __len__(self):
        return len(self.materials)

    # make_material is called with the die the first time it is seen.
    # Dice are keyed by identity.
    def get(self, die, make_material):
        material = self.materials.get(die)
        if material is None:
            material = make_material(die)
            self.materials[die] = material
        return material

    def clear(self):
        self.materials.clear()
