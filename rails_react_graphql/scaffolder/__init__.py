"""Project scaffolder -- renders the Rails + React + GraphQL project tree.

Quick usage::

    from rails_react_graphql.recovery import RecoveryCoordinator
    from rails_react_graphql.scaffolder import ProjectGenerator

    generator = ProjectGenerator(config, RecoveryCoordinator())
    project_path = await generator.generate()
"""

from .base import GeneratorStep
from .generator import FinalizeGenerator, ProjectGenerator
from .templates import TemplateRenderer, build_variables, substitute

__all__ = [
    "FinalizeGenerator",
    "GeneratorStep",
    "ProjectGenerator",
    "TemplateRenderer",
    "build_variables",
    "substitute",
]
