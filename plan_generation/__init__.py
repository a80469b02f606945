"""
Scene planning, conversion and assembly of the canonical script.
"""

from .assembler import assemble_script, sanitize_conversion
from .errors import AssemblyError, GenerationError, PipelineError, PlanningError
from .scene_converter import SceneConverter
from .scene_planner import ScenePlanner
from .script_schema import Script, dump_script

__all__ = [
    "AssemblyError",
    "GenerationError",
    "PipelineError",
    "PlanningError",
    "SceneConverter",
    "ScenePlanner",
    "Script",
    "assemble_script",
    "dump_script",
    "sanitize_conversion",
]
