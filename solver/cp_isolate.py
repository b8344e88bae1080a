# solver/cp_isolate.py
import multiprocessing as mp
from typing import Any, Dict, List, Optional, Tuple
import traceback

from solver.backends import SolverError

# Worker must be top-level (picklable on Windows spawn)
def _solve_worker(q, grid: str, tiles, W: int, H: int, edge_states, max_seconds: float,
                  maze: bool, seed: Optional[int]):
    try:
        # imports inside child
        import random

        import progress
        from solver.backends import CpSatBackend, SolverLimitError
        from solver.encoder import solve_tiling
        from solver.geometry import get_geometry
        from solver.maze import carve_maze

        geometry = get_geometry(grid)
        backend = CpSatBackend(max_seconds=max_seconds)
        progress.set_phase("solve")
        try:
            result = solve_tiling(geometry, tiles, W, H, backend,
                                  on_stats=progress.set_model_stats,
                                  edge_states=edge_states)
        except SolverLimitError as e:
            q.put(("err", False, None, str(e)))
            return
        except SolverError as e:
            q.put(("invalid", False, None, str(e)))
            return

        maze_result = None
        if maze and result.satisfiable:
            progress.set_phase("maze")
            rng = random.Random(seed) if seed is not None else None
            maze_result = carve_maze(geometry, result.placements, rng)
        q.put(("ok", result.satisfiable, {"tiling": result, "maze": maze_result}, None))
    except MemoryError:
        q.put(("err", False, None, "Child ran out of memory"))
    except Exception as e:
        q.put(("exc", False, None, f"{e}\n{traceback.format_exc()}"))

def run_tiling_isolated(grid: str, tiles: List, W: int, H: int, edge_states=None,
                        max_seconds: float = 60.0, maze: bool = False,
                        seed: Optional[int] = None
                        ) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str], Optional[str]]:
    """
    Returns (ok, result, reason, crash_note).
    result is {"tiling": TilingResult, "maze": MazeResult | None} when the child
    finished; ok is the satisfiability verdict.
    crash_note is non-empty only if the child crashed/was killed/timed out.
    Raises SolverError when the child rejected the model, as an in-process
    solve would.
    """
    ctx = mp.get_context("spawn")  # safest on Windows
    q: mp.Queue = ctx.Queue()
    p = ctx.Process(target=_solve_worker,
                    args=(q, grid, tiles, W, H, edge_states, float(max_seconds), bool(maze), seed))
    p.daemon = True
    p.start()

    # Allow a small buffer beyond model time for teardown
    timeout = float(max_seconds) + 5.0
    try:
        tag, ok, result, reason = q.get(timeout=timeout)
    except Exception:
        tag = None

    if tag is None:
        if p.is_alive():
            p.terminate()
            p.join(2.0)
            return False, None, "Stopped before solution (timebox)", "killed: timeout"
        p.join(0.5)
        # Non-zero exit code means native crash or hard error
        if p.exitcode not in (0, None):
            return False, None, f"Stopped before solution (child exit {p.exitcode})", "child crashed"
        return False, None, "No result from child process", "no-result"

    p.join(2.0)
    if tag == "ok":
        return ok, result, reason, None
    elif tag == "invalid":
        raise SolverError(reason)
    elif tag == "err":
        return False, None, reason, None
    else:  # "exc"
        return False, None, reason, None
