"""
Strategy Selector - meta-strategy that picks among candidate strategies.

Pipeline at every re-evaluation bar:
window -> score each candidate (and parameter combination) -> pick best ->
record decision -> delegate the bar's signal to the winner.

Candidates are scored with simulate() on the trailing window slice, so
nested runs share nothing with the outer backtest.
"""

import json
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any

from stratsim_engine.backtest.engine import SimulationOutcome, simulate
from stratsim_engine.backtest.metrics import (
    calculate_returns,
    calculate_sharpe_ratio,
    calculate_win_rate,
)
from stratsim_engine.backtest.models import Decision
from stratsim_engine.config import Settings, get_settings
from stratsim_engine.domain import PricePoint, Signal
from stratsim_engine.errors import StrategyNotFoundError, ValidationError
from stratsim_engine.interfaces.strategy import Strategy
from stratsim_engine.logging import get_logger
from stratsim_engine.optimization.active_choice import ActiveChoiceStore
from stratsim_engine.optimization.grid import grid_size, parameter_grid
from stratsim_engine.optimization.models import (
    CandidateScore,
    EvaluationMetric,
    Regime,
    SelectorRunState,
)
from stratsim_engine.strategies.params import (
    ParameterKind,
    StrategyParameterSpec,
    default_parameters,
)

if TYPE_CHECKING:
    from stratsim_engine.strategies.registry import StrategyRegistry

logger = get_logger(__name__)

SELECTOR_ID = "ai-selector"


class StrategySelector(Strategy):
    """
    Meta-strategy that re-chooses its delegate every N bars.

    Per re-evaluation bar i:
    1. Window = bars [i - lookback + 1, i], clamped to the series start
    2. Too short (< minEvaluationBars): keep the previous choice (or HOLD)
    3. Otherwise score every candidate combination on the window; the
       first best score wins ties
    4. Publish the choice to the ActiveChoiceStore and log a Decision
    5. Delegate the bar to the winner over the full series
    """

    def __init__(
        self,
        registry: "StrategyRegistry",
        active_choices: ActiveChoiceStore,
        settings: Settings | None = None,
    ):
        self._registry = registry
        self._active_choices = active_choices
        self._settings = settings or get_settings()

    @property
    def id(self) -> str:
        return SELECTOR_ID

    @property
    def name(self) -> str:
        return "AI Strategy Selector"

    @property
    def description(self) -> str:
        return (
            "A meta-strategy that dynamically selects and executes an underlying "
            "trading strategy based on recent performance."
        )

    @property
    def is_meta(self) -> bool:
        return True

    @property
    def parameter_specs(self) -> list[StrategyParameterSpec]:
        return [
            StrategyParameterSpec(
                name="evaluationLookbackPeriod",
                label="Evaluation Lookback Period",
                kind=ParameterKind.NUMERIC,
                default=30,
                min=2,
                max=500,
                integer=True,
                description="Number of recent bars used to evaluate candidate strategies.",
            ),
            StrategyParameterSpec(
                name="minEvaluationBars",
                label="Minimum Evaluation Bars",
                kind=ParameterKind.NUMERIC,
                default=10,
                min=2,
                max=500,
                integer=True,
                description="Evaluation is skipped while the window holds fewer bars.",
            ),
            StrategyParameterSpec(
                name="candidateStrategyIds",
                label="Candidate Strategy IDs (comma-separated)",
                kind=ParameterKind.TEXT,
                default="",
                description=(
                    "Optional comma-separated strategy ids to consider. "
                    "Empty means every non-meta registered strategy."
                ),
            ),
            StrategyParameterSpec(
                name="evaluationMetric",
                label="Evaluation Metric",
                kind=ParameterKind.TEXT,
                default=EvaluationMetric.PNL.value,
                options=[m.value for m in EvaluationMetric],
                description="Metric used to score candidates: pnl, sharpe or winRate.",
            ),
            StrategyParameterSpec(
                name="optimizeParameters",
                label="Optimize Parameters of Candidate Strategies",
                kind=ParameterKind.BOOLEAN,
                default=False,
                description="Grid-search each candidate's parameter space instead of using defaults.",
            ),
            StrategyParameterSpec(
                name="reevaluationInterval",
                label="Re-evaluation Interval",
                kind=ParameterKind.NUMERIC,
                default=1,
                min=1,
                max=1000,
                integer=True,
                description="Re-evaluate every N bars (1 = every bar).",
            ),
        ]

    # =========================================================================
    # Validation
    # =========================================================================

    def resolve_candidates(self, params: dict[str, Any]) -> list[Strategy]:
        """
        Candidate strategies in enumeration order.

        Raises:
            ValidationError: Unknown or meta candidate, or no candidates at all
        """
        raw = str(params.get("candidateStrategyIds") or "")
        requested = [s.strip() for s in raw.split(",") if s.strip()]

        if not requested:
            candidates = [s for s in self._registry.strategies() if not s.is_meta]
        else:
            candidates = []
            for strategy_id in dict.fromkeys(requested):
                try:
                    strategy = self._registry.get_strategy(strategy_id)
                except StrategyNotFoundError as e:
                    raise ValidationError(f"Unknown candidate strategy: {strategy_id}") from e
                if strategy.is_meta:
                    raise ValidationError(
                        f"Candidate {strategy_id} is a meta-strategy and cannot be selected"
                    )
                candidates.append(strategy)

        if not candidates:
            raise ValidationError("Selector has no candidate strategies")
        return candidates

    def validate(self, params: dict[str, Any]) -> None:
        if params["minEvaluationBars"] > params["evaluationLookbackPeriod"]:
            raise ValidationError("minEvaluationBars must not exceed evaluationLookbackPeriod")

        candidates = self.resolve_candidates(params)
        if not params["optimizeParameters"]:
            return

        for candidate in candidates:
            size = grid_size(candidate.parameter_specs)
            if size > self._settings.max_grid_combinations:
                raise ValidationError(
                    f"Candidate {candidate.id} has {size} parameter combinations "
                    f"(limit {self._settings.max_grid_combinations})"
                )
            if size > self._settings.grid_warning_threshold:
                logger.warning(
                    "Candidate %s has %d parameter combinations; evaluation may be slow",
                    candidate.id,
                    size,
                )

    # =========================================================================
    # Signal Generation
    # =========================================================================

    def create_state(self, symbol: str) -> dict[str, Any]:
        return {"symbol": symbol, "selector": SelectorRunState(symbol=symbol)}

    def decision_log(self, state: dict[str, Any]) -> list[Decision] | None:
        run_state: SelectorRunState = state["selector"]
        return list(run_state.decisions)

    def evaluate(
        self,
        series: Sequence[PricePoint],
        index: int,
        params: dict[str, Any],
        state: dict[str, Any],
    ) -> Signal:
        run_state: SelectorRunState = state["selector"]

        if index % int(params["reevaluationInterval"]) == 0:
            self._reevaluate(series, index, params, run_state)

        if run_state.current_id is None:
            return Signal.HOLD

        delegate = self._registry.get_strategy(run_state.current_id)
        chosen_params = run_state.current_params or {}
        key = _delegate_key(delegate.id, chosen_params)
        if key not in run_state.delegate_states:
            run_state.delegate_states[key] = delegate.create_state(run_state.symbol)

        return delegate.evaluate(series, index, chosen_params, run_state.delegate_states[key])

    def _reevaluate(
        self,
        series: Sequence[PricePoint],
        index: int,
        params: dict[str, Any],
        run_state: SelectorRunState,
    ) -> None:
        metric = EvaluationMetric(params["evaluationMetric"])
        timestamp = series[index].timestamp

        start = max(0, index - int(params["evaluationLookbackPeriod"]) + 1)
        window = list(series[start : index + 1])

        if len(window) < int(params["minEvaluationBars"]):
            self._carry_forward(run_state, timestamp, metric)
            return

        best = self.choose(window, params, run_state.symbol)
        if best is None:
            logger.warning("No valid candidate combination at %s; keeping previous choice", timestamp)
            self._carry_forward(run_state, timestamp, metric)
            return

        winner = self._registry.get_strategy(best.strategy_id)
        if winner.id != run_state.current_id or best.parameters != run_state.current_params:
            logger.info(
                "Selector for %s chose %s at %s (%s=%.4f)",
                run_state.symbol,
                winner.id,
                timestamp.isoformat(),
                metric.value,
                best.score,
            )

        run_state.current_id = winner.id
        run_state.current_name = winner.name
        run_state.current_params = best.parameters

        self._active_choices.set_active_choice(
            run_state.symbol,
            winner.id,
            winner.name,
            best.parameters,
            decided_at=timestamp,
        )
        run_state.decisions.append(
            Decision(
                timestamp=timestamp,
                chosen_strategy_id=winner.id,
                chosen_strategy_name=winner.name,
                chosen_parameters=dict(best.parameters),
                evaluation_score=best.score,
                evaluation_metric=metric.value,
            )
        )

    def _carry_forward(
        self,
        run_state: SelectorRunState,
        timestamp: datetime,
        metric: EvaluationMetric,
    ) -> None:
        run_state.decisions.append(
            Decision(
                timestamp=timestamp,
                chosen_strategy_id=run_state.current_id,
                chosen_strategy_name=run_state.current_name,
                chosen_parameters=(
                    dict(run_state.current_params) if run_state.current_params is not None else None
                ),
                evaluation_score=None,
                evaluation_metric=metric.value,
                evaluated=False,
            )
        )

    # =========================================================================
    # Scoring
    # =========================================================================

    def choose(
        self,
        window: Sequence[PricePoint],
        params: dict[str, Any],
        symbol: str,
    ) -> CandidateScore | None:
        """
        Best candidate combination over window, or None if none is valid.

        params must already be validated against parameter_specs.
        """
        return self._score_candidates(
            window,
            self.resolve_candidates(params),
            bool(params["optimizeParameters"]),
            EvaluationMetric(params["evaluationMetric"]),
            symbol,
        )

    def _score_candidates(
        self,
        window: Sequence[PricePoint],
        candidates: Iterable[Strategy],
        optimize: bool,
        metric: EvaluationMetric,
        symbol: str,
    ) -> CandidateScore | None:
        best: CandidateScore | None = None

        for candidate in candidates:
            if optimize:
                combos: Iterable[dict[str, Any]] = parameter_grid(candidate.parameter_specs)
            else:
                combos = [default_parameters(candidate.parameter_specs)]

            for combo in combos:
                try:
                    candidate.validate(combo)
                except ValidationError as e:
                    logger.debug("Skipping %s %s: %s", candidate.id, combo, e)
                    continue

                outcome = simulate(
                    window, candidate, combo, self._settings.selector_sim_cash, symbol
                )
                score = self.score_outcome(outcome, metric)
                # Strict comparison keeps the earliest enumerated combination on ties
                if best is None or score > best.score:
                    best = CandidateScore(
                        strategy_id=candidate.id,
                        parameters=combo,
                        score=score,
                        trades=len(outcome.portfolio.trades),
                    )

        return best

    def score_outcome(self, outcome: SimulationOutcome, metric: EvaluationMetric) -> float:
        """Score one sub-simulation; undefined Sharpe or win rate count as 0.0."""
        if metric == EvaluationMetric.SHARPE:
            returns = calculate_returns(outcome.portfolio.equity_curve)
            sharpe = calculate_sharpe_ratio(returns, self._settings.default_periods_per_year)
            return sharpe if sharpe is not None else 0.0
        if metric == EvaluationMetric.WIN_RATE:
            win_rate, _, _ = calculate_win_rate(outcome.portfolio.trades)
            return win_rate if win_rate is not None else 0.0
        return outcome.profit_or_loss


def _delegate_key(strategy_id: str, params: dict[str, Any]) -> str:
    return f"{strategy_id}:{json.dumps(params, sort_keys=True, default=str)}"


# =============================================================================
# Regimes
# =============================================================================


def build_regimes(
    decisions: Sequence[Decision],
    timestamps: Sequence[datetime],
) -> list[Regime]:
    """
    Collapse a decision log into contiguous regimes.

    Each decision holds from its bar until the bar before the next decision;
    consecutive decisions with the same strategy and parameters merge. The
    regimes cover [timestamps[0], timestamps[-1]] without gaps or overlap.
    Bars before the first decision form a HOLD regime (strategy_id None).

    Args:
        decisions: Decision log (any order)
        timestamps: Every simulated bar timestamp, ascending

    Returns:
        Regimes ordered by start
    """
    if not timestamps:
        return []

    position = {ts: i for i, ts in enumerate(timestamps)}
    ordered = sorted(
        (d for d in decisions if d.timestamp in position),
        key=lambda d: d.timestamp,
    )

    # (start_index, strategy_id, parameters)
    spans: list[tuple[int, str | None, dict[str, Any] | None]] = []
    if not ordered or position[ordered[0].timestamp] > 0:
        spans.append((0, None, None))
    for decision in ordered:
        spans.append(
            (position[decision.timestamp], decision.chosen_strategy_id, decision.chosen_parameters)
        )

    regimes: list[Regime] = []
    last = len(timestamps) - 1
    for n, (start_idx, strategy_id, parameters) in enumerate(spans):
        end_idx = spans[n + 1][0] - 1 if n + 1 < len(spans) else last
        if end_idx < start_idx:
            continue
        if regimes and regimes[-1].strategy_id == strategy_id and regimes[-1].parameters == parameters:
            prev = regimes[-1]
            regimes[-1] = prev.model_copy(
                update={"end": timestamps[end_idx], "bars": prev.bars + end_idx - start_idx + 1}
            )
            continue
        regimes.append(
            Regime(
                start=timestamps[start_idx],
                end=timestamps[end_idx],
                strategy_id=strategy_id,
                parameters=parameters,
                bars=end_idx - start_idx + 1,
            )
        )
    return regimes
