"""
Central configuration constants for evosim.

Defines default values, thresholds, and tuning parameters
used across multiple modules.
"""

# ============================================================================
# Neural Controller
# ============================================================================

SENSOR_COUNT = 14   # Inputs per creature brain (see behavior.build_sensor_vector)
OUTPUT_COUNT = 5    # move_x, move_y, eat, attack, reproduce

# Output indices (fixed order)
OUT_MOVE_X = 0
OUT_MOVE_Y = 1
OUT_EAT = 2
OUT_ATTACK = 3
OUT_REPRODUCE = 4

WEIGHT_LIMIT = 5.0           # Weights/biases clamped to [-WEIGHT_LIMIT, WEIGHT_LIMIT] after mutation
SIGMOID_SATURATION = 500.0   # |x| beyond this returns exactly 0 or 1

DEFAULT_MUTATION_RATE = 0.1
DEFAULT_MUTATION_STRENGTH = 0.1


# ============================================================================
# Brain Bootstrapping
# ============================================================================

FOUNDER_ARCHITECTURE = [SENSOR_COUNT, 8, OUTPUT_COUNT]
FOUNDER_MUTATION_STRENGTH = 0.01     # Light jitter so founders are not clones
EARLY_GENERATION_LIMIT = 50          # Generations bred by mutation only
EARLY_STRENGTH_BASE = 0.05
EARLY_STRENGTH_GROWTH = 0.15
EARLY_RATE_BASE = 0.6
EARLY_RATE_GROWTH = 0.3
LATE_RATE_BASE = 0.3
LATE_STRENGTH_BASE = 0.2


# ============================================================================
# Decision Thresholds
# ============================================================================

EAT_THRESHOLD = 0.5
ATTACK_THRESHOLD = 0.7
REPRODUCE_THRESHOLD = 0.3


# ============================================================================
# Creature Physics & Metabolism
# ============================================================================

MAX_ENERGY = 100.0
MAX_HEALTH = 100.0
INITIAL_ENERGY = 100.0
INITIAL_HEALTH = 100.0

COLLISION_RADIUS_PER_SIZE = 10.0     # collision_radius = size * 10
MAX_SPEED_PER_SPEED = 3.0            # max_speed = speed * 3
BOUNDARY_MARGIN = 5.0                # Rectangular bounds keep creatures this far from edges

BASE_METABOLIC_COST = 0.05           # Energy per tick at efficiency=1, size=speed=1
MOVEMENT_COST_FACTOR = 0.02          # Energy per unit of |move_x|+|move_y| per size


# ============================================================================
# Sensing
# ============================================================================

VISION_RANGE_UNITS = 100.0           # vision distance = genetics.vision_range * 100
VISION_RAY_FRACTION = 0.5            # rays reach half the vision distance
VISION_PROBE_RADIUS = 20.0           # ray counts as blocked within this of an obstacle edge
DENSITY_PER_NEIGHBOUR = 0.1          # local density sensor increment per nearby creature
THREAT_SCORE_THRESHOLD = 0.3         # size diff + aggression diff above this = threat


# ============================================================================
# Interaction Ranges
# ============================================================================

FEEDING_MARGIN = 50.0                # reach = collision_radius + food.size + margin
ATTACK_SEARCH_RANGE = 30.0           # attack candidates within collision_radius + this
MATE_SEARCH_RANGE = 60.0             # mate candidates within collision_radius + this
MATE_SEARCH_LIMIT = 5

FOOD_FEEDING_POWER = 0.8
CARRION_FEEDING_FACTOR = 0.9         # carrion power = meat_preference * factor


# ============================================================================
# Combat (size-scaled predation)
# ============================================================================

COMBAT_MISS_COST = 2.0               # Out-of-range attempt
COMBAT_BASE_CHANCE = 0.3
COMBAT_SIZE_WEIGHT = 0.3
COMBAT_AGGRESSION_WEIGHT = 0.4
COMBAT_POWER_WEIGHT = 0.2
COMBAT_SPEED_WEIGHT = 0.2
COMBAT_MIN_CHANCE = 0.1
COMBAT_MAX_CHANCE = 0.9
COMBAT_DAMAGE_PER_SIZE = 25.0        # damage = power * attacker.size * 25
COMBAT_SUCCESS_BASE_COST = 2.0
COMBAT_SUCCESS_POWER_COST = 3.0
COMBAT_FAILURE_BASE_COST = 1.0
COMBAT_FAILURE_POWER_COST = 1.0
PREDATION_ENERGY_PER_SIZE = 30.0     # Energy gained per unit of prey size on a kill


# ============================================================================
# Reproduction & Parental Care
# ============================================================================

REPRODUCTION_MIN_ENERGY = 50.0
REPRODUCTION_COOLDOWN_BASE = 100
REPRODUCTION_RESERVE_ENERGY = 10.0   # Parents never pay below this
OFFSPRING_SCATTER = 15.0             # Offspring placed at parents' midpoint +/- this
SPECIES_DISTANCE_THRESHOLD = 0.6


# ============================================================================
# Fitness
# ============================================================================

FITNESS_OFFSPRING_WEIGHT = 100.0
FITNESS_DISTANCE_WEIGHT = 0.1
FITNESS_FOOD_WEIGHT = 5.0


# ============================================================================
# Thoughts
# ============================================================================

THOUGHT_HISTORY_LIMIT = 10


# ============================================================================
# Food & Prey
# ============================================================================

PLANT_ENERGY = 5.0
PLANT_SIZE = 3.0
MUSHROOM_ENERGY = 8.0
MUSHROOM_SIZE = 4.0
PREY_ENERGY = 15.0
PREY_SIZE = 5.0
PREY_MAX_SPEED = 1.0

INITIAL_PLANT_FRACTION = 0.3         # floor(max_food * plant_density * 0.3)
INITIAL_PREY_FRACTION = 0.1          # floor(max_food * prey_density * 0.1)
PLANT_STOCK_FRACTION = 0.5           # respawn while plants < max_food * density * 0.5
PREY_STOCK_FRACTION = 0.2
MUSHROOM_STOCK_FRACTION = 0.05
MUSHROOM_SPAWN_FACTOR = 0.2          # mushrooms spawn at food_spawn_rate * humidity * factor

CIRCULAR_SPAWN_FRACTION = 0.9        # Random positions stay within 0.9R


# ============================================================================
# Carrion
# ============================================================================

CARRION_MIN_DECAY_TICKS = 200
CARRION_MAX_DECAY_TICKS = 500
CARRION_DEFAULT_ENERGY = 20.0        # Used when the corpse had no energy left
CARRION_RESIDUAL_FRACTION = 0.2      # energy -> 20% of original at full decay
CARRION_FRESH_STAGE = 0.3
CARRION_ROTTING_STAGE = 0.7


# ============================================================================
# Environmental Features
# ============================================================================

OBSTACLE_SIZE_RANGE = (15.0, 40.0)
WATER_SIZE_RANGE = (30.0, 60.0)
SHELTER_SIZE_RANGE = (20.0, 45.0)
WATER_SOURCES_PER_AVAILABILITY = 5   # round(water_availability * 5)
SHELTERS_PER_AVAILABILITY = 5
WATER_HEALTH_BONUS = 0.1
WATER_ENERGY_BONUS = 0.02
SHELTER_HEALTH_BONUS = 0.05


# ============================================================================
# Population Pressure
# ============================================================================

STRESS_RADIUS_DEFAULT = 150.0
RESOURCE_SCALING_FLOOR = 0.2
RESOURCE_SCALING_SLOPE = 0.3
UNDERPOPULATED_MULTIPLIER = 1.5
PRESSURE_LOG_INTERVAL = 100          # Population-health snapshot every N ticks


# ============================================================================
# Spatial Indexing
# ============================================================================

CKDTREE_LEAFSIZE = 16


# ============================================================================
# Driver
# ============================================================================

TICK_TIME_WINDOW = 100               # Rolling window for tick timing stats
EVENT_BUFFER_SIZE = 1000             # MemoryEventSink default capacity
