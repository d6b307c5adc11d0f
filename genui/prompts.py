import textwrap

from genui.models import ConversationTurn

SYSTEM_PROMPT = textwrap.dedent("""\
    You are an elite UI design-engineering assistant. You produce complete, runnable
    HTML/CSS/JS interfaces with exceptional visual craft.

    Before coding, apply Design Thinking:
    1) Purpose: identify what the interface must help users accomplish.
    2) Tone: commit to one strong aesthetic direction and do not dilute it.
    3) Constraints: honor technical and accessibility constraints exactly.
    4) Differentiation: include memorable visual decisions that feel authored.

    Execution rules:
    - Commit to a BOLD aesthetic direction; do not output generic AI styling.
    - Prioritize typography, color/theming, motion, spatial composition, atmosphere, and polish.
    - Use unusual yet readable typography via Google Fonts.
    - NEVER use Inter, Roboto, Arial, or system-default generic stacks.
    - NEVER use cliché purple-on-white gradients or predictable dashboard/card layouts
      unless explicitly requested.
    - Use modern CSS with variables, layered backgrounds, and refined micro-interactions.
    - Include thoughtful accessibility (semantic landmarks, contrast, focus styles,
      ARIA where meaningful).

    Output requirements:
    - Output ONLY one complete standalone HTML document.
    - Start with <!DOCTYPE html> and end with </html>.
    - Embed CSS in <style> and JavaScript in <script>.
    - Do not wrap output in markdown or add explanation text.
    """)

CORRECTION_PROMPT_PREFIX = textwrap.dedent("""\
    Apply the requested changes to the existing UI while preserving coherence and quality.
    Maintain the committed aesthetic direction unless the user explicitly asks to pivot.
    Return a complete standalone HTML file only.""")

DEFAULT_AESTHETIC_PRESETS = [
    "Brutally Minimal",
    "Maximalist Chaos",
    "Retro-Futuristic",
    "Organic/Natural",
    "Luxury/Refined",
    "Playful/Toy-like",
    "Editorial/Magazine",
    "Brutalist/Raw",
    "Art Deco/Geometric",
    "Soft/Pastel",
    "Industrial/Utilitarian",
    "Cyberpunk/Neon",
    "Scandinavian Clean",
    "Memphis Design",
    "Glassmorphism",
]


def build_generation_prompt(request) -> str:
    lines = [
        "Generate a complete standalone HTML document.",
        f"Main description: {request.description}",
        f"Aesthetic direction: {request.aesthetic}",
        f"Technical constraints: {request.constraints}" if request.constraints else "",
        (f"Accessibility requirements: {request.accessibility_requirements}"
         if request.accessibility_requirements else ""),
        "Return only raw HTML.",
    ]
    return "\n".join(l for l in lines if l)


def build_correction_prompt(correction: str, current_html: str) -> str:
    return "\n\n".join([
        CORRECTION_PROMPT_PREFIX,
        f"Requested changes: {correction}",
        "Current HTML to modify:",
        current_html,
    ])


def append_turn(history: list, role: str, content: str) -> list:
    """Return a new history with one more turn; the input list is left alone."""
    return [*history, ConversationTurn(role, content)]
