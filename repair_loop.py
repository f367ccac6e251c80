"""Constraint repair loop.

Walks the clearance checks in order and, for every violation, asks a decision
provider what to do: accept one of the suggested fixes, ignore the violation,
or abort the run. Accepting a fix re-derives everything and re-runs the same
check; earlier checks are never revisited, so two competing fixes cannot
ping-pong forever.

Tall stairs then get a second checkpoint to place (or decline) the mid
landing.

The decision provider is any callable taking a ComplianceViolation and
returning a Decision, so a console prompt, an HTTP request carrying scripted
answers, or a test can drive the same loop.
"""
import logging
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field

from diameter_catalog import DEFAULT_CATALOG
from spiral_calculator import (
    DerivedParameters,
    SpiralStaircaseError,
    StaircaseSpec,
    derive,
)
from validators.building_regs import (
    MID_LANDING_FIELD,
    SOFT_CHECK_ORDER,
    ComplianceViolation,
    ViolationKind,
    check_fatal,
    check_mid_landing,
    check_walkline_width,
    run_check,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5


class InvalidDecisionError(SpiralStaircaseError):
    """The decision provider answered something the checkpoint cannot take."""


class RepairState(str, Enum):
    CHECKING = "checking"
    AWAITING_DECISION = "awaiting_decision"
    REPAIRED = "repaired"
    ABORTED = "aborted"
    READY = "ready"


class OutcomeStatus(str, Enum):
    READY = "ready"
    ABORTED = "aborted"
    REJECTED = "rejected"    # fatal input ranges, nothing to repair


class DecisionAction(str, Enum):
    ACCEPT = "accept"
    IGNORE = "ignore"
    ABORT = "abort"
    PLACE_LANDING = "place_landing"


class Decision(BaseModel):
    action: DecisionAction
    choice: int = 0

    @classmethod
    def accept(cls, which: int = 0) -> "Decision":
        return cls(action=DecisionAction.ACCEPT, choice=which)

    @classmethod
    def ignore(cls) -> "Decision":
        return cls(action=DecisionAction.IGNORE)

    @classmethod
    def abort(cls) -> "Decision":
        return cls(action=DecisionAction.ABORT)

    @classmethod
    def landing_at(cls, tread_number: int) -> "Decision":
        """Place the mid landing at a 1-based tread position."""
        return cls(action=DecisionAction.PLACE_LANDING, choice=tread_number)


DecisionProvider = Callable[[ComplianceViolation], Decision]


class RepairAction(BaseModel):
    """Audit record of one input changed during repair."""

    field: str
    before: float
    after: float
    reason: str


class RepairOutcome(BaseModel):
    status: OutcomeStatus
    spec: Optional[StaircaseSpec] = None
    derived: Optional[DerivedParameters] = None
    mid_landing_index: int = -1
    ignored: list[ComplianceViolation] = Field(default_factory=list)
    actions: list[RepairAction] = Field(default_factory=list)
    advisories: list[ComplianceViolation] = Field(default_factory=list)
    # REJECTED: the fatal violations. ABORTED: the violation being answered.
    violations: list[ComplianceViolation] = Field(default_factory=list)

    @property
    def ready(self) -> bool:
        return self.status is OutcomeStatus.READY


class RepairLoop:
    """One repair session for one spec. Not reusable across runs."""

    def __init__(self, decide: DecisionProvider, catalog=DEFAULT_CATALOG,
                 max_attempts: int = DEFAULT_MAX_ATTEMPTS, snap_center_pole: bool = False):
        self.decide = decide
        self.catalog = catalog
        self.max_attempts = max_attempts
        self.snap_center_pole = snap_center_pole
        self.state = RepairState.CHECKING
        self.transitions = [RepairState.CHECKING]
        self._actions = []
        self._ignored = []

    def _enter(self, state: RepairState):
        if self.transitions[-1] is not state:
            self.transitions.append(state)
        self.state = state

    def _ask(self, violation: ComplianceViolation) -> Decision:
        self._enter(RepairState.AWAITING_DECISION)
        logger.info(f"Checkpoint {violation.kind.value}: {violation.message}")
        decision = self.decide(violation)
        if not isinstance(decision, Decision):
            raise InvalidDecisionError(f"Decision provider returned {decision!r}")
        return decision

    def _abort(self, violation: ComplianceViolation) -> RepairOutcome:
        self._enter(RepairState.ABORTED)
        logger.warning(f"Repair aborted by caller at {violation.kind.value}")
        return RepairOutcome(status=OutcomeStatus.ABORTED, violations=[violation])

    def _ignore(self, violation: ComplianceViolation):
        logger.warning(f"Ignoring {violation.kind.value}: {violation.message}")
        self._ignored.append(violation)

    def _apply(self, spec: StaircaseSpec, violation: ComplianceViolation, which: int) -> StaircaseSpec:
        if not 0 <= which < len(violation.suggestions):
            raise InvalidDecisionError(
                f"{violation.kind.value} has {len(violation.suggestions)} suggestion(s), got choice {which}")
        fix = violation.suggestions[which]
        before = getattr(spec, fix.field)
        logger.info(f"Accepted fix for {violation.kind.value}: {fix.field} {before:.3f} -> {fix.value:.3f}")
        self._actions.append(RepairAction(field=fix.field, before=before, after=fix.value,
                                          reason=violation.kind.value))
        self._enter(RepairState.REPAIRED)
        return spec.with_value(fix.field, fix.value)

    def _snap(self, spec: StaircaseSpec) -> StaircaseSpec:
        dia = spec.center_pole_diameter
        if self.catalog.is_stock(dia):
            return spec
        stock = self.catalog.nearest(dia)
        logger.info(f"Center pole diameter adjusted to closest stock size: {self.catalog.label(stock)}")
        self._actions.append(RepairAction(field="center_pole_diameter", before=dia, after=stock,
                                          reason="stock_size"))
        return spec.with_value("center_pole_diameter", stock)

    # -----------------------------------------------------------------------

    def run(self, spec: StaircaseSpec) -> RepairOutcome:
        if self.snap_center_pole:
            spec = self._snap(spec)
        derived = derive(spec)

        fatal = check_fatal(spec, derived)
        if fatal:
            for v in fatal:
                logger.error(v.message)
            return RepairOutcome(status=OutcomeStatus.REJECTED, spec=spec, violations=fatal)

        for kind in SOFT_CHECK_ORDER:
            attempts = 0
            while True:
                self._enter(RepairState.CHECKING)
                violation = run_check(kind, spec, derived)
                if violation is None:
                    break
                if attempts >= self.max_attempts:
                    logger.warning(f"{kind.value} still failing after {attempts} fix(es), leaving it unresolved")
                    self._ignored.append(violation)
                    break
                attempts += 1

                decision = self._ask(violation)
                if decision.action is DecisionAction.ABORT:
                    return self._abort(violation)
                if decision.action is DecisionAction.IGNORE:
                    self._ignore(violation)
                    break
                if decision.action is not DecisionAction.ACCEPT:
                    raise InvalidDecisionError(f"{decision.action.value} is not valid for {kind.value}")
                spec = self._apply(spec, violation, decision.choice)
                derived = derive(spec)

        self._enter(RepairState.READY)
        mid_index = -1
        advisories = []

        landing = check_mid_landing(spec, derived)
        if landing is not None:
            decision = self._ask(landing)
            if decision.action is DecisionAction.ABORT:
                return self._abort(landing)
            if decision.action is DecisionAction.IGNORE:
                self._ignore(landing)
            else:
                tread = self._landing_tread(landing, decision, derived.number_of_treads)
                mid_index = tread - 1
                derived = derive(spec, mid_landing_index=mid_index)
                logger.info(f"Mid landing placed at tread {tread}, "
                            f"rotation per tread now {derived.rotation_per_tread:.2f}°")
                # The landing takes 90 degrees, so the remaining treads narrow
                narrow = check_walkline_width(spec, derived)
                if narrow is not None:
                    logger.warning(f"After mid landing: {narrow.message}")
                    advisories.append(narrow)
            self._enter(RepairState.READY)

        return RepairOutcome(
            status=OutcomeStatus.READY,
            spec=spec,
            derived=derived,
            mid_landing_index=mid_index,
            ignored=list(self._ignored),
            actions=list(self._actions),
            advisories=advisories,
        )

    def _landing_tread(self, landing: ComplianceViolation, decision: Decision, n: int) -> int:
        if decision.action is DecisionAction.ACCEPT:
            fix = [s for s in landing.suggestions if s.field == MID_LANDING_FIELD]
            if not fix:
                raise InvalidDecisionError("No suggested mid landing position to accept")
            return int(fix[0].value)
        if decision.action is DecisionAction.PLACE_LANDING:
            if not 1 <= decision.choice <= n - 1:
                raise InvalidDecisionError(
                    f"Mid landing tread must be between 1 and {n - 1} (tread {n} holds the top landing), "
                    f"got {decision.choice}")
            return decision.choice
        raise InvalidDecisionError(f"{decision.action.value} is not valid for {ViolationKind.MID_LANDING_REQUIRED.value}")


def repair(spec: StaircaseSpec, decide: DecisionProvider, **kwargs) -> RepairOutcome:
    """Run one repair session. See RepairLoop for the keyword options."""
    return RepairLoop(decide, **kwargs).run(spec)


def always_ignore(violation: ComplianceViolation) -> Decision:
    return Decision.ignore()


def scripted(decisions, default: Optional[Decision] = None) -> DecisionProvider:
    """Decision provider that replays a fixed list of answers in order.

    Once the list runs out it keeps answering `default` (ignore if None).
    """
    queue = list(decisions)
    fallback = default or Decision.ignore()

    def _decide(violation: ComplianceViolation) -> Decision:
        return queue.pop(0) if queue else fallback

    return _decide
