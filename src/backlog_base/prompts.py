from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Union


SYSTEM_PROMPTS: Dict[str, str] = {
    "en": """\
You are a helpful assistant specialized in converting project specifications
into structured task backlogs. Answer with a single YAML document and nothing
else, using this shape:

project: <project name>
success_criteria:
  - <criterion>
epics:
  - id: <EPIC-ID>
    title: <epic title>
    tasks: [<task>, ...]
tasks:
  - id: <TASK-ID>
    title: <short title>
    depends: [<TASK-ID>, ...]
    state: Todo
    description: <what to do>
    deliverable: <path> or [<path>, ...]
    done_when:
      - <acceptance criterion>

Task ids must be unique across the whole document, and every id listed in
`depends` must be the id of another task. Dependencies must not form a cycle.
""",
    "fr": """\
Tu es un assistant spécialisé dans la conversion de spécifications de projet
en backlogs de tâches structurés. Réponds avec un unique document YAML et rien
d'autre, de la forme suivante :

project: <nom du projet>
success_criteria:
  - <critère>
epics:
  - id: <EPIC-ID>
    title: <titre de l'epic>
    tasks: [<tâche>, ...]
tasks:
  - id: <TASK-ID>
    title: <titre court>
    depends: [<TASK-ID>, ...]
    state: Todo
    description: <ce qu'il faut faire>
    deliverable: <chemin> ou [<chemin>, ...]
    done_when:
      - <critère d'acceptation>

Les identifiants de tâche doivent être uniques dans tout le document, et chaque
identifiant cité dans `depends` doit être celui d'une autre tâche. Les
dépendances ne doivent pas former de cycle.
""",
}

DEFAULT_LANGUAGE = "en"


def load_system_prompt(language: str = DEFAULT_LANGUAGE, prompt_dir: Optional[Union[str, Path]] = None) -> str:
    """
    Return the system prompt for `language`.

    A `system_<language>.txt` file in `prompt_dir` overrides the built-in
    template. Unknown languages fall back to English.
    """
    if language not in SYSTEM_PROMPTS:
        language = DEFAULT_LANGUAGE
    if prompt_dir is not None:
        path = Path(prompt_dir) / f"system_{language}.txt"
        if path.exists():
            return path.read_text(encoding="utf-8")
    return SYSTEM_PROMPTS[language]


def build_user_prompt(spec: str, style: str) -> str:
    return f"Backlog style: {style}\n\n{spec.strip()}"
