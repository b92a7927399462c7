from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional, Tuple


# Block phases of one experiment run
BLOCK_SETUP = "setup"
BLOCK_PRACTICE = "practice"
BLOCK_PRACTICE_COMPLETE = "practice_complete"
BLOCK_TASK = "task"
BLOCK_COMPLETE = "complete"

RUNNING_BLOCKS = (BLOCK_PRACTICE, BLOCK_TASK)

TIMEOUT_RESPONSE = "timeout"
NO_RESPONSE = "no_response"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class PhaseSpec:
    """
    One step of a trial timeline.

    duration_ms=None means the phase never ends on its own: a
    response-accepting phase waits for the resolver, any other phase
    is skipped on the next scheduler tick.
    """

    name: str
    duration_ms: Optional[int] = None
    show_stimulus: bool = True
    accepts_responses: bool = False
    # stimulus goes blank after this long, responses are still accepted
    stimulus_duration_ms: Optional[int] = None


@dataclass(frozen=True)
class TrialDefinition:
    """
    Base of all trial definitions.

    Subclasses are frozen records, one per task. The engine only relies on
    task_id, score() and as_fields().
    """

    task_id: ClassVar[str] = "generic"

    def expected_response(self) -> Optional[str]:
        return getattr(self, "correct_response", None)

    def score(self, response: str) -> Optional[bool]:
        expected = self.expected_response()
        if expected is None:
            return None
        return response == expected

    def as_fields(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GenericTrial(TrialDefinition):
    payload: Dict[str, Any] = field(default_factory=dict)
    correct_response: Optional[str] = None

    def as_fields(self) -> Dict[str, Any]:
        values = dict(self.payload)
        values["correct_response"] = self.correct_response
        return values


@dataclass(frozen=True)
class FlankerTrial(TrialDefinition):
    task_id: ClassVar[str] = "flanker"

    display: str
    stimulus_type: str  # congruent / incongruent
    correct_response: str


@dataclass(frozen=True)
class StroopTrial(TrialDefinition):
    task_id: ClassVar[str] = "stroop"

    word: str
    color: str
    stimulus_type: str
    correct_response: str


@dataclass(frozen=True)
class NBackTrial(TrialDefinition):
    task_id: ClassVar[str] = "nback"

    letter: str
    is_target: bool
    n_back_level: int
    previous_letter: Optional[str]
    correct_response: str  # "match" or "no_response"

    def score(self, response: str) -> Optional[bool]:
        pressed = response == "match"
        if self.is_target:
            return pressed
        return not pressed


@dataclass(frozen=True)
class PosnerTrial(TrialDefinition):
    task_id: ClassVar[str] = "posner"

    cue_type: str  # endogenous / exogenous
    cue_location: str
    target_location: str
    target_present: bool
    soa: int
    cue_validity: str  # valid / invalid
    correct_response: str = "space"


@dataclass(frozen=True)
class ChangeDetectionTrial(TrialDefinition):
    task_id: ClassVar[str] = "change_detection"

    set_size: int
    memory_array: Tuple[Tuple[int, str], ...]  # (grid position, color)
    probe_position: int
    probe_color: str
    correct_color: str
    has_change: bool
    correct_response: str  # "change" or "same"
    grid_size: int = 6


@dataclass(frozen=True)
class VisualSearchTrial(TrialDefinition):
    task_id: ClassVar[str] = "visual_search"

    condition: str
    set_size: int
    target_present: bool
    stimuli: Tuple[Tuple[str, str, str], ...]  # (kind, color, orientation)
    correct_response: str  # "j" present, "k" absent


@dataclass(frozen=True)
class MentalRotationTrial(TrialDefinition):
    task_id: ClassVar[str] = "mental_rotation"

    shape_type: str
    right_shape_type: str
    left_rotation: int
    right_rotation: int
    trial_type: str  # same / different
    correct_response: str

    @property
    def angular_disparity(self) -> int:
        diff = abs(self.left_rotation - self.right_rotation) % 360
        return min(diff, 360 - diff)


@dataclass
class TrialResult:
    trial_number: int
    block: str
    task_id: str
    response: str
    reaction_time: float
    is_correct: Optional[bool]
    timestamp: str
    trial_fields: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Look a field up on the result first, then extra, then the trial."""
        if key in _RESULT_FIELDS:
            return getattr(self, key)
        if key in self.extra:
            return self.extra[key]
        return self.trial_fields.get(key, default)

    @property
    def is_timeout(self) -> bool:
        return self.response == TIMEOUT_RESPONSE

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = dict(self.trial_fields)
        record.update(
            {
                "trial_number": self.trial_number,
                "phase": self.block,
                "task_type": self.task_id,
                "response": self.response,
                "reaction_time": self.reaction_time,
                "is_correct": self.is_correct,
                "timestamp": self.timestamp,
            }
        )
        record.update(self.extra)
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "TrialResult":
        known = {
            "trial_number", "phase", "task_type", "response",
            "reaction_time", "is_correct", "timestamp",
        }
        return cls(
            trial_number=int(record.get("trial_number", 0)),
            block=str(record.get("phase", BLOCK_TASK)),
            task_id=str(record.get("task_type", "generic")),
            response=str(record.get("response", NO_RESPONSE)),
            reaction_time=record.get("reaction_time") or 0,
            is_correct=record.get("is_correct"),
            timestamp=str(record.get("timestamp", "")),
            trial_fields={k: v for k, v in record.items() if k not in known},
        )


_RESULT_FIELDS = {f.name for f in fields(TrialResult)}


@dataclass
class BlockState:
    block_phase: str = BLOCK_SETUP
    current_trial_index: int = 0
    results: List[TrialResult] = field(default_factory=list)
    practice_results: List[TrialResult] = field(default_factory=list)

    def results_for(self, block: str) -> List[TrialResult]:
        if block == BLOCK_PRACTICE:
            return self.practice_results
        return self.results


@dataclass(frozen=True)
class SessionContext:
    session_id: Optional[str] = None
    participant_id: str = "local"
    participant_name: str = "Anonymous"
    share_data: bool = False
    started_at: str = field(default_factory=utc_now_iso)

    @property
    def in_session(self) -> bool:
        return self.session_id is not None

    def enrich(self, record: Dict[str, Any]) -> Dict[str, Any]:
        enriched = dict(record)
        enriched.update(
            {
                "session_id": self.session_id,
                "student_id": self.participant_id,
                "student_name": self.participant_name,
                "share_data": self.share_data,
                "session_start_time": self.started_at,
            }
        )
        return enriched
