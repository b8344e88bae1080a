# solver/backends.py - SAT backend contract and its CP-SAT implementation
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ortools.sat.python import cp_model as _cp

from config import CFG


class SolverError(RuntimeError):
    """The backend rejected the model (configuration or encoding error)."""


class SolverLimitError(SolverError):
    """The backend stopped on a time or memory limit without a verdict."""


@dataclass
class SolveResult:
    satisfiable: bool
    assignment: Dict[int, bool] = field(default_factory=dict)


class SatBackend:
    """Clause sink consumed by the encoder.

    Variables are 1-based ints; a literal is ``+v`` (true) or ``-v`` (false);
    an empty clause is an immediate contradiction.  An instance holds one
    formula and must not be shared by two solves running at the same time.
    """

    def new_variable(self) -> int:
        raise NotImplementedError

    def add_clause(self, literals: Sequence[int]) -> None:
        raise NotImplementedError

    def get_variable_count(self) -> int:
        raise NotImplementedError

    def get_clause_count(self) -> int:
        raise NotImplementedError

    def solve(self) -> SolveResult:
        raise NotImplementedError


class CpSatBackend(SatBackend):
    """:class:`SatBackend` on top of OR-Tools CP-SAT.

    Each variable becomes a ``BoolVar`` and each clause an ``AddBoolOr``.
    Solver parameters default to the values in :class:`config.CFG`.
    """

    def __init__(
        self,
        *,
        max_seconds: Optional[float] = None,
        workers: Optional[int] = None,
        max_memory_mb: Optional[int] = None,
        random_seed: Optional[int] = None,
        minimize_true: Optional[bool] = None,
    ) -> None:
        self.max_seconds = float(CFG.MAX_SECONDS if max_seconds is None else max_seconds)
        self.workers = int(CFG.WORKERS if workers is None else workers)
        self.max_memory_mb = int(CFG.MAX_MEMORY_MB if max_memory_mb is None else max_memory_mb)
        self.random_seed = int(CFG.RANDOM_SEED if random_seed is None else random_seed)
        self.minimize_true = bool(CFG.MINIMIZE_TRUE if minimize_true is None else minimize_true)

        self._model = _cp.CpModel()
        self._vars: List[_cp.IntVar] = []
        self._num_clauses = 0
        self._contradiction = False
        self.last_status: Optional[str] = None
        self.wall_time: float = 0.0

    def new_variable(self) -> int:
        idx = len(self._vars) + 1
        self._vars.append(self._model.NewBoolVar(f"v{idx}"))
        return idx

    def _literal(self, lit: int):
        v = abs(int(lit))
        if v == 0 or v > len(self._vars):
            raise ValueError(f"literal {lit} refers to an unknown variable")
        var = self._vars[v - 1]
        return var if lit > 0 else var.Not()

    def add_clause(self, literals: Sequence[int]) -> None:
        self._num_clauses += 1
        if not literals:
            self._contradiction = True
            return
        self._model.AddBoolOr([self._literal(lit) for lit in literals])

    def get_variable_count(self) -> int:
        return len(self._vars)

    def get_clause_count(self) -> int:
        return self._num_clauses

    def _configure(self, solver: _cp.CpSolver) -> None:
        solver.parameters.max_time_in_seconds = self.max_seconds
        solver.parameters.max_memory_in_mb = self.max_memory_mb
        solver.parameters.num_search_workers = self.workers
        solver.parameters.random_seed = self.random_seed
        solver.parameters.cp_model_presolve = True
        solver.parameters.log_search_progress = bool(CFG.LOG_SEARCH_PROGRESS)

    def solve(self) -> SolveResult:
        if self._contradiction:
            self.last_status = "INFEASIBLE"
            return SolveResult(False)

        if self.minimize_true and self._vars:
            self._model.Minimize(sum(self._vars))

        solver = _cp.CpSolver()
        self._configure(solver)
        res = solver.Solve(self._model)
        self.last_status = solver.StatusName(res)
        self.wall_time = solver.WallTime()

        if res in (_cp.OPTIMAL, _cp.FEASIBLE):
            assignment = {
                idx: bool(solver.BooleanValue(var))
                for idx, var in enumerate(self._vars, start=1)
            }
            return SolveResult(True, assignment)
        if res == _cp.INFEASIBLE:
            return SolveResult(False)
        if res == _cp.MODEL_INVALID:
            raise SolverError("Model invalid (configuration error)")
        raise SolverLimitError("Stopped before solution (time or memory limit)")


__all__ = [
    "SolverError",
    "SolverLimitError",
    "SolveResult",
    "SatBackend",
    "CpSatBackend",
]
