import logging
import math
import random
import numpy
from scipy.spatial.transform import Rotation

logger = logging.getLogger(__name__)

# A die has stopped when both its squared speed and squared spin are
# below this.
SETTLED_SPEED_SQ = 1e-4

# A face is down when the dot product of its normal and straight up is
# below this, that is, within about 2.6 degrees of straight down.
FACE_DOWN_DOT = -0.999

WORLD_UP = numpy.array([0.0, 1.0, 0.0])


# The starting state of a die that is thrown.
# orientation is a unit quaternion (x, y, z, w).
class Roll:
    def __init__(self, position, orientation, velocity, angular_velocity):
        self.position = position
        self.orientation = orientation
        self.velocity = velocity
        self.angular_velocity = angular_velocity

    def __repr__(self):
        return (
            f"Roll(position={list(self.position)} "
            f"orientation={list(self.orientation)})"
        )


# The state of a body as reported by the physics engine.
class BodyState:
    def __init__(
        self, position, orientation, velocity, angular_velocity, is_static=False
    ):
        self.position = position
        self.orientation = orientation
        self.velocity = velocity
        self.angular_velocity = angular_velocity
        self.is_static = is_static


def is_settled(is_static, angular_speed_sq, linear_speed_sq):
    return is_static or (
        angular_speed_sq < SETTLED_SPEED_SQ and linear_speed_sq < SETTLED_SPEED_SQ
    )


# Returns the value that is up on a die at rest, or None if the die is
# still moving. The face pointing down determines the value.
def resolve(orientation, is_static, angular_speed_sq, linear_speed_sq, model, results):
    if not is_settled(is_static, angular_speed_sq, linear_speed_sq):
        return None

    heights = Rotation.from_quat(orientation).apply(model.normals) @ WORLD_UP
    down = numpy.flatnonzero(heights < FACE_DOWN_DOT)
    if len(down) == 0:
        # Resting on an edge or on another die.
        logger.warning(
            "Die at rest with no face down, orientation %s", list(orientation)
        )
        return None
    if len(down) > 1:
        logger.warning(
            "Faces %s are all down, using face %d", down.tolist(), down[0]
        )
    return int(results[down[0]])


def speed_sq(v):
    return float(numpy.dot(v, v))


def resolve_state(state, die):
    return resolve(
        state.orientation,
        state.is_static,
        speed_sq(state.angular_velocity),
        speed_sq(state.velocity),
        die.model,
        die.results,
    )


# Returns a uniformly distributed random rotation as a quaternion
# (x, y, z, w). rand returns random numbers in [0, 1).
# See http://planning.cs.uiuc.edu/node198.html
def random_quaternion(rand=random.random):
    u = rand()
    v = rand()
    w = rand()
    return numpy.array(
        [
            math.sqrt(1 - u) * math.sin(2 * math.pi * v),
            math.sqrt(1 - u) * math.cos(2 * math.pi * v),
            math.sqrt(u) * math.sin(2 * math.pi * w),
            math.sqrt(u) * math.cos(2 * math.pi * w),
        ]
    )


# The speed at which a die is thrown toward +x, and the random speed
# added in any horizontal direction.
THROW_SPEED = 8
SCATTER_SPEED = 3

# The speed at which a thrown die spins.
SPIN_SPEED = 30


# A random throw of a die starting at position.
def roll_die(position, rand=random.random):
    orientation = random_quaternion(rand)

    direction = 2 * math.pi * rand()
    velocity = SCATTER_SPEED * numpy.array(
        [math.cos(direction), 0.0, math.sin(direction)]
    ) + numpy.array([THROW_SPEED, 0.0, 0.0])

    spin = Rotation.from_quat(random_quaternion(rand))
    angular_velocity = spin.apply(WORLD_UP * SPIN_SPEED)

    return Roll(
        numpy.asarray(position, dtype=float),
        orientation,
        velocity,
        angular_velocity,
    )


# One die on the table: the die, its object in the renderer, and its body
# in the physics engine. value is the result, once the die has stopped.
class DieObject:
    def __init__(self, die, handle, body):
        self.die = die
        self.handle = handle
        self.body = body
        self.value = None

    def __repr__(self):
        return f"DieObject({self.die} value={self.value})"


# The dice of one roll.
#
# physics must provide
#   create_body(shape, roll) -> body
#   body_state(body) -> BodyState
#   make_static(body)
#   remove_body(body)
# renderer must provide
#   create_object(die, materials) -> handle
#   update_object(handle, position, orientation)
#   remove_object(handle)
# materials is the MaterialCache handed to the renderer.
class RollSession:
    def __init__(self, physics, renderer, materials):
        self.physics = physics
        self.renderer = renderer
        self.materials = materials
        self.objects = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.reset()

    def add(self, die, roll):
        body = self.physics.create_body(die.shape, roll)
        handle = self.renderer.create_object(die, self.materials)
        o = DieObject(die, handle, body)
        self.objects.append(o)
        self.renderer.update_object(handle, roll.position, roll.orientation)
        return o

    # Called once per simulation step. Moves the rendered objects to match
    # their bodies, and freezes each die once its value is known.
    # Returns the values of all the dice once every one has stopped,
    # None until then.
    def tick(self):
        for o in self.objects:
            state = self.physics.body_state(o.body)
            self.renderer.update_object(o.handle, state.position, state.orientation)
            if o.value is None:
                o.value = resolve_state(state, o.die)
                if o.value is not None:
                    self.physics.make_static(o.body)

        if self.objects and all(o.value is not None for o in self.objects):
            return [o.value for o in self.objects]
        return None

    # Takes every die off the table before the next roll.
    def reset(self):
        for o in self.objects:
            self.renderer.remove_object(o.handle)
            self.physics.remove_body(o.body)
        self.objects = []
