# config.py
import os

# ======= SAT backend (CP-SAT) =======
WORKERS              = int(os.getenv("PT_WORKERS", "1"))
MAX_SECONDS          = float(os.getenv("PT_MAX_SECONDS", "60"))
MAX_MEMORY_MB        = int(os.getenv("PT_MAX_MEMORY_MB", "2048"))
RANDOM_SEED          = int(os.getenv("PT_RANDOM_SEED", "0"))
LOG_SEARCH_PROGRESS  = int(os.getenv("PT_LOG_SEARCH_PROGRESS", "0")) != 0

# When set, the backend minimises the number of true variables instead of
# returning the first satisfying assignment.  Slower on large regions.
MINIMIZE_TRUE        = int(os.getenv("PT_MINIMIZE_TRUE", "0")) != 0

# ======= Maze carving =======
# Empty means "seed from system entropy"; any integer makes mazes repeatable.
_MAZE_SEED_RAW       = os.getenv("PT_MAZE_SEED", "").strip()
MAZE_SEED            = int(_MAZE_SEED_RAW) if _MAZE_SEED_RAW else None

# ======= Host / request guards =======
ISOLATE              = int(os.getenv("PT_ISOLATE", "1")) != 0
MAX_REGION_CELLS     = int(os.getenv("PT_MAX_REGION_CELLS", "10000"))
DEFAULT_GRID         = os.getenv("PT_DEFAULT_GRID", "square")


class CFG:
    WORKERS             = WORKERS
    MAX_SECONDS         = MAX_SECONDS
    MAX_MEMORY_MB       = MAX_MEMORY_MB
    RANDOM_SEED         = RANDOM_SEED
    LOG_SEARCH_PROGRESS = LOG_SEARCH_PROGRESS
    MINIMIZE_TRUE       = MINIMIZE_TRUE

    MAZE_SEED = MAZE_SEED

    ISOLATE          = ISOLATE
    MAX_REGION_CELLS = MAX_REGION_CELLS
    DEFAULT_GRID     = DEFAULT_GRID


__all__ = ["CFG"]
