from __future__ import annotations

"""Read-only 2024 sample team used by the chat panel.

The same people appear in the relay's system prompt. Nothing here reads the
evaluation store: the team is a value built by ``default_sample_team()`` and
passed explicitly to every helper.
"""

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from calibration.evaluations.colors import performance_color


@dataclass(frozen=True)
class SampleCompetency:
    name: str
    score: float
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "score": self.score,
            "label": self.label,
            "color": performance_color(self.score).to_dict(),
        }


@dataclass(frozen=True)
class SampleEmployee:
    key: str
    name: str
    potential: float
    potential_label: str
    competencies: float
    competencies_label: str
    direct_manager: Optional[float] = None
    direct_manager_label: Optional[str] = None
    competency_detail: Tuple[SampleCompetency, ...] = ()
    alert: Optional[str] = None

    @property
    def search_terms(self) -> Tuple[str, ...]:
        parts = tuple(_fold(p) for p in self.name.split())
        return (self.key,) + parts


@dataclass(frozen=True)
class SampleTeam:
    employees: Tuple[SampleEmployee, ...] = ()

    @property
    def keys(self) -> List[str]:
        return [e.key for e in self.employees]

    def get(self, key: str) -> Optional[SampleEmployee]:
        for employee in self.employees:
            if employee.key == key:
                return employee
        return None


@dataclass
class CannedReply:
    content: str
    card_type: Optional[str] = None  # "employee" | "comparison"
    employee_keys: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"content": self.content, "card_type": self.card_type, "employee_keys": list(self.employee_keys)}


def _fold(text: str) -> str:
    """Lowercase and strip accents so "Zuñiga" matches "zuniga"."""
    decomposed = unicodedata.normalize("NFKD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _competencies(*rows: Tuple[str, float, str]) -> Tuple[SampleCompetency, ...]:
    return tuple(SampleCompetency(name, score, label) for name, score, label in rows)


def default_sample_team() -> SampleTeam:
    return SampleTeam(
        employees=(
            SampleEmployee(
                key="paula",
                name="Paula Roa",
                potential=2.5,
                potential_label="Medio (Calibrado)",
                competencies=3.75,
                competencies_label="Sobresaliente",
                direct_manager=3.75,
                direct_manager_label="Sobresaliente",
                competency_detail=_competencies(
                    ("Somos un solo equipo", 4.0, "Sobresaliente"),
                    ("Nos movemos ágilmente", 3.5, "Sobresaliente"),
                    ("Nos apasionamos por cliente", 3.5, "Sobresaliente"),
                    ("Cuidamos el futuro", 4.0, "Sobresaliente"),
                ),
            ),
            SampleEmployee(
                key="alvaro",
                name="Alvaro Marquez",
                potential=2.4,
                potential_label="Bajo (Calibrado)",
                competencies=3.38,
                competencies_label="Sobresaliente",
                direct_manager=3.13,
                direct_manager_label="Cumple Satisfactorio",
                alert="Potencial Bajo",
                competency_detail=_competencies(
                    ("Somos un solo equipo", 3.33, "Sobresaliente"),
                    ("Nos movemos ágilmente", 3.33, "Sobresaliente"),
                    ("Nos apasionamos por cliente", 3.5, "Sobresaliente"),
                    ("Cuidamos el futuro", 3.33, "Sobresaliente"),
                ),
            ),
            SampleEmployee(
                key="anibal",
                name="Anibal Retamal",
                potential=2.5,
                potential_label="Medio (Calibrado)",
                competencies=2.88,
                competencies_label="Cumple Parcial",
                direct_manager=2.88,
                direct_manager_label="Cumple Parcial",
                alert="Cliente bajo (2.5)",
                competency_detail=_competencies(
                    ("Somos un solo equipo", 3.0, "Cumple Satisfactorio"),
                    ("Nos movemos ágilmente", 3.0, "Cumple Satisfactorio"),
                    ("Nos apasionamos por cliente", 2.5, "Bajo lo esperado"),
                    ("Cuidamos el futuro", 3.0, "Cumple Satisfactorio"),
                ),
            ),
            SampleEmployee(
                key="angeles",
                name="Angeles Zuñiga",
                potential=3.0,
                potential_label="Medio +",
                competencies=3.14,
                competencies_label="Cumple Satisfactorio",
                direct_manager=3.38,
                direct_manager_label="Sobresaliente",
                competency_detail=_competencies(
                    ("Somos un solo equipo", 3.25, "Cumple Satisfactorio"),
                    ("Nos movemos ágilmente", 3.19, "Cumple Satisfactorio"),
                    ("Nos apasionamos por cliente", 3.19, "Cumple Satisfactorio"),
                    ("Cuidamos el futuro", 2.94, "Cumple Parcial"),
                ),
            ),
        )
    )


# ---------------------------------------------------------------------------
# Matching + cards
# ---------------------------------------------------------------------------


def find_employee_keys(message: str, team: SampleTeam) -> List[str]:
    """Keys of sample employees named in ``message`` as whole words, in team order."""
    words = set(re.findall(r"\w+", _fold(message or "")))
    return [e.key for e in team.employees if any(term in words for term in e.search_terms)]


def build_employee_card(employee: SampleEmployee) -> Dict[str, Any]:
    return {
        "key": employee.key,
        "name": employee.name,
        "potential": employee.potential,
        "potential_label": employee.potential_label,
        "potential_color": performance_color(employee.potential).to_dict(),
        "competencies": employee.competencies,
        "competencies_label": employee.competencies_label,
        "competencies_color": performance_color(employee.competencies).to_dict(),
        "direct_manager": employee.direct_manager,
        "direct_manager_label": employee.direct_manager_label,
        "direct_manager_color": (
            performance_color(employee.direct_manager).to_dict() if employee.direct_manager is not None else None
        ),
        "competency_detail": [c.to_dict() for c in employee.competency_detail],
        "alert": employee.alert,
    }


def build_cards(keys: Sequence[str], team: SampleTeam) -> List[Dict[str, Any]]:
    cards = []
    for key in keys:
        employee = team.get(key)
        if employee is not None:
            cards.append(build_employee_card(employee))
    return cards


# ---------------------------------------------------------------------------
# Canned replies (offline mode)
# ---------------------------------------------------------------------------

GREETING_REPLY = """¡Hola! Soy tu asistente de calibración. Puedo ayudarte a:

• **Consultar evaluaciones** de tu equipo
• **Comparar desempeño** entre colaboradores
• **Identificar alertas** y casos especiales
• **Preparar** tu reunión de calibración

¿Qué te gustaría saber sobre tu equipo?"""

ALERTS_REPLY = """Hay **3 alertas** activas en tu equipo:

🔴 **Alvaro Marquez** - Potencial Bajo (2.4)
   → Etiqueta: Bajo (Calibrado)
   → Requiere plan de desarrollo urgente

🟡 **Anibal Retamal** - Competencia baja en cliente
   → "Nos apasionamos por cliente": 2.5 (Bajo lo esperado)
   → Necesita coaching en orientación al cliente

🟢 **Angeles Zuñiga** - Competencia baja en futuro
   → "Cuidamos el futuro": 2.94 (Cumple Parcial)
   → Oportunidad de mejora

¿Necesitas más detalle sobre alguna alerta?"""

CALIBRATION_REPLY = """**Preparación para Calibración - Tu Equipo**

📋 **Resumen ejecutivo:**
- Total: 4 colaboradores
- Promedio potencial: 2.6
- Mejor en competencias: Paula Roa (3.75)
- Requiere atención: Alvaro Marquez (potencial 2.4)

🎯 **Temas clave a discutir:**

1. **Desarrollo prioritario:**
   - Alvaro Marquez (potencial bajo, necesita plan)

2. **Fortalezas a mantener:**
   - Paula Roa (excelente en competencias)
   - Angeles Zuñiga (buen potencial 3.0)

3. **Áreas de mejora:**
   - Anibal: orientación al cliente (2.5)
   - Angeles: visión de futuro (2.94)

¿Quieres que prepare un one-pager para la reunión?"""

DEFAULT_REPLY = "Entiendo tu pregunta. Déjame buscar esa información en los datos de tu equipo..."

GREETING_WORDS = ("hola", "ayuda", "puedes")
TEAM_WORDS = ("equipo", "team", "colaboradores")
ALERT_WORDS = ("alerta", "flag", "problema")
COMPARE_WORDS = ("compar", "vs", "diferencia", "todos")
CALIBRATION_WORDS = ("calibra", "reuni", "preparar")


def _team_table(team: SampleTeam) -> str:
    lines = [
        f"Tu equipo tiene **{len(team.employees)} colaboradores** este año:",
        "",
        "| Nombre | Potencial | Etiqueta | Competencias |",
        "|--------|-----------|----------|--------------|",
    ]
    for e in team.employees:
        lines.append(f"| {e.name} | {e.potential:.1f} | {e.potential_label} | {e.competencies:.2f} {e.competencies_label} |")
    lines += ["", "¿Quieres que profundice en algún colaborador?"]
    return "\n".join(lines)


def _has_any(text: str, words: Sequence[str]) -> bool:
    return any(w in text for w in words)


def canned_reply(message: str, team: SampleTeam) -> CannedReply:
    """Keyword-matched answer used when no LLM is reachable.

    Checks run in a fixed order: greeting, comparison, team overview, alerts,
    single employee, calibration prep, default. A comparison needs a compare
    word; when fewer than two people are named it covers the whole team.
    """
    text = _fold(message or "")
    mentioned = find_employee_keys(message, team)

    if _has_any(text, GREETING_WORDS):
        return CannedReply(GREETING_REPLY)
    if _has_any(text, COMPARE_WORDS):
        if len(mentioned) >= 2:
            return CannedReply(f"Comparación entre {len(mentioned)} colaboradores:", "comparison", mentioned)
        return CannedReply("Aquí tienes a todo tu equipo para comparar:", "comparison", team.keys)
    if _has_any(text, TEAM_WORDS):
        return CannedReply(_team_table(team))
    if _has_any(text, ALERT_WORDS):
        return CannedReply(ALERTS_REPLY)
    if mentioned:
        employee = team.get(mentioned[0])
        return CannedReply(f"Aquí está la información de {employee.name}:", "employee", [employee.key])
    if _has_any(text, CALIBRATION_WORDS):
        return CannedReply(CALIBRATION_REPLY)
    return CannedReply(DEFAULT_REPLY)


__all__ = [
    "CannedReply",
    "SampleCompetency",
    "SampleEmployee",
    "SampleTeam",
    "build_cards",
    "build_employee_card",
    "canned_reply",
    "default_sample_team",
    "find_employee_keys",
]
