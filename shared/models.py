"""
shared/models.py

Common data models and type definitions used across the assistant.

This module contains the catalog entities produced by the normalizer, the
per-conversation session state kept by the session store, the ephemeral match
candidates produced by the text matcher, and the HTTP payload models used by
the messaging collaborator.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Tuple
from enum import Enum
import time
from pydantic import BaseModel, Field

class CourseStatus(Enum):
    """
    Enrollment status of a course.

    The assistant's system rules tell the model how each status may be presented:
    - OPEN: actively recommended, with its registration link
    - IN_PROGRESS: mentioned briefly, without a link
    - UPCOMING: mentioned last, with a fixed disclaimer
    - FINISHED: suppressed unless the user names it
    """
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    UPCOMING = "upcoming"
    FINISHED = "finished"

class ConversationState(Enum):
    """States a single inbound message moves through inside the orchestrator."""
    RECEIVED = "received"
    SHORTCUT_CHECK = "shortcut_check"
    SHORTCUT_REPLIED = "shortcut_replied"
    RETRIEVE = "retrieve"
    ASSEMBLE = "assemble"
    MODEL_CALL = "model_call"
    POSTPROCESS = "postprocess"
    REPLIED = "replied"
    FAILED = "failed"
    DONE = "done"

@dataclass(frozen=True)
class Requirements:
    """Eligibility flags plus free-text extra requirements."""
    mayor_de_18: bool = False
    carnet_conducir: bool = False
    primaria_completa: bool = False
    secundaria_completa: bool = False
    otros: Tuple[str, ...] = ()

@dataclass(frozen=True)
class Materials:
    """Items the participant must bring and items the course provides."""
    a_cargo_del_participante: Tuple[str, ...] = ()
    provistos: Tuple[str, ...] = ()

@dataclass(frozen=True)
class Course:
    """
    A sanitized catalog entry.

    Attribute names follow the catalog's own field names because the same shape is
    serialized into the prompt. Instances are only built by the catalog normalizer,
    so every string and list here has already been sanitized and capped.
    """
    id: str
    titulo: str = ""
    descripcion_breve: str = ""
    descripcion_completa: str = ""
    actividades: str = ""
    duracion_total: str = ""
    fecha_inicio: str = ""
    fecha_inicio_legible: str = ""
    fecha_fin: str = ""
    fecha_fin_legible: str = ""
    frecuencia_semanal: str = "otro"
    localidades: Tuple[str, ...] = ()
    direcciones: Tuple[str, ...] = ()
    horarios: Tuple[str, ...] = ()
    requisitos: Requirements = field(default_factory=Requirements)
    materiales: Materials = field(default_factory=Materials)
    formulario_inscripcion: str = ""
    imagen: str = ""
    estado: CourseStatus = CourseStatus.UPCOMING

@dataclass(frozen=True)
class MatchCandidate:
    """A course ranked by title similarity to the user's message; never persisted."""
    id: str
    title: str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "titulo": self.title, "score": round(self.score, 3)}

@dataclass
class Turn:
    """One history entry. `role` is either 'user' or 'assistant'."""
    role: str
    text: str

    def to_message(self) -> Dict[str, str]:
        """Render the turn in the role/content shape of chat completion APIs."""
        return {"role": self.role, "content": self.text}

@dataclass
class SuggestedCourse:
    """The last course whose registration link the assistant handed out."""
    title: str
    link: str

@dataclass
class ConversationSession:
    """
    Bounded per-conversation memory.

    Sessions are created and mutated only through `services.session_store.SessionStore`,
    which trims `history` after every append and serializes access per conversation.
    """
    conversation_id: str
    history: List[Turn] = field(default_factory=list)
    last_suggested_course: Optional[SuggestedCourse] = None
    last_seen: float = field(default_factory=time.monotonic)

class InboundMessage(BaseModel):
    """
    An inbound turn delivered by the messaging collaborator.
    """
    conversation_id: str = Field(..., description="Stable identifier of the user's message thread")
    text: str = Field("", description="Message body as received from the channel")
    is_self_originated: bool = Field(False, description="True when the message was sent by the bot's own account")

class ReplyResponse(BaseModel):
    """Reply returned to the messaging collaborator; `reply` is null when the message was discarded."""
    reply: Optional[str] = Field(None, description="Plain text to deliver to the conversation")
