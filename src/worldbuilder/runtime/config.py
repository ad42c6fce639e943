"""Runtime tuning constants.

Balance numbers are configuration, not algorithm. Engines read them through
their config dataclasses so a scenario or test can override a value without
touching module state.
"""

# Tick orchestration
MAX_TICK_SECONDS: float = 5.0  # clamp for backgrounded / suspended hosts

# Population
FOOD_CONSUMPTION_PER_CAPITA: float = 0.5  # rice per person per second
MIN_FOOD_FOR_GROWTH: float = 20.0
POPULATION_GROWTH_PER_SECOND: float = 0.1
STARVATION_PER_SECOND: float = 0.2
MIN_POPULATION: float = 1.0
BASE_HOUSING: int = 5

# Production
SPEED_BOOST_MULTIPLIER: float = 2.0
DEPLETION_RATIO: float = 0.1  # terrain resource consumed per unit produced

# Premium currency (gems)
PREMIUM_BUILDING_GEM_COST: int = 50
SPEED_BOOST_GEM_COST: int = 5
SPEED_BOOST_DEFAULT_MS: int = 60_000

# Demolition
DEMOLISH_REFUND_RATIO: float = 0.5

# Scouting
SCOUT_REGION_WIDTH: int = 8
SCOUT_REGION_HEIGHT: int = 8
SCOUT_DEFAULT_GOLD_COST: int = 50

# Timebase
SECONDS_PER_DAY: float = 120.0
DAYS_PER_SEASON: int = 4

# Starting window
INITIAL_VISIBLE_WIDTH: int = 20
INITIAL_VISIBLE_HEIGHT: int = 20
STARTING_PLAZA_RADIUS: int = 2
