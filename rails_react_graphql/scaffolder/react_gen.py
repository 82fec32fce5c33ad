"""React frontend generation (Vite or webpack, TypeScript or JavaScript)."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from ..config import ProjectConfig
from ..utils import print_info, print_success
from .base import GeneratorStep

if TYPE_CHECKING:
    from ..recovery.coordinator import RunContext


class ReactGenerator(GeneratorStep):
    name = "Generating React frontend"
    description = "Setting up React"

    async def run(self, config: ProjectConfig, context: RunContext) -> None:
        frontend = config.project_path / "frontend"
        variables = {**self.variables, **frontend_variables(config)}
        ledger = context.ledger

        print_info(
            f"Creating React {config.react_version} app "
            f"({'TypeScript' if config.typescript else 'JavaScript'}, {config.build_tool})..."
        )
        await self.renderer.render_tree("react/base", frontend, variables, ledger)
        await self.renderer.render_tree(f"react/{config.build_tool}", frontend, variables, ledger)
        if config.typescript:
            await self.renderer.render_tree("react/typescript", frontend, variables, ledger)
        if config.linting:
            await self.renderer.render_tree("react/linting", frontend, variables, ledger)
        if config.testing:
            await self.renderer.render_tree("react/testing", frontend, variables, ledger)

        print_success("React frontend generated successfully!")


def frontend_variables(config: ProjectConfig) -> dict[str, str]:
    """``package.json`` blocks that depend on the toggles."""
    dependencies = {
        "@apollo/client": "^3.9.0",
        "graphql": "^16.8.1",
        "react": f"^{config.react_version}",
        "react-dom": f"^{config.react_version}",
    }
    dev_dependencies: dict[str, str] = {}
    scripts: dict[str, str] = {}

    if config.build_tool == "vite":
        dev_dependencies["vite"] = "^5.1.0"
        dev_dependencies["@vitejs/plugin-react"] = "^4.2.1"
        scripts.update({"dev": "vite", "build": "vite build", "preview": "vite preview"})
    else:
        dev_dependencies.update(
            {
                "webpack": "^5.90.0",
                "webpack-cli": "^5.1.4",
                "webpack-dev-server": "^4.15.1",
                "babel-loader": "^9.1.3",
                "@babel/preset-react": "^7.23.3",
                "html-webpack-plugin": "^5.6.0",
                "style-loader": "^3.3.4",
                "css-loader": "^6.10.0",
            }
        )
        scripts.update({"dev": "webpack serve --mode development", "build": "webpack --mode production"})

    if config.typescript:
        dev_dependencies.update(
            {
                "typescript": "^5.3.3",
                "@types/react": "^18.2.55",
                "@types/react-dom": "^18.2.19",
            }
        )
        if config.build_tool == "webpack":
            dev_dependencies["ts-loader"] = "^9.5.1"
        scripts["typecheck"] = "tsc --noEmit"

    if config.linting:
        dev_dependencies.update({"eslint": "^8.56.0", "prettier": "^3.2.5"})
        scripts["lint"] = "eslint src"
        scripts["format"] = "prettier --write src"

    if config.testing:
        dev_dependencies.update(
            {
                "vitest": "^1.2.2",
                "@testing-library/react": "^14.2.1",
                "jsdom": "^24.0.0",
            }
        )
        scripts["test"] = "vitest run"

    return {
        "rootAssertion": "!" if config.typescript else "",
        "userParamType": (
            ": { id: string; name: string; email: string }" if config.typescript else ""
        ),
        "webpackLoader": "ts-loader" if config.typescript else "babel-loader",
        "DEPENDENCIES": json.dumps(dependencies, indent=2, sort_keys=True),
        "DEV_DEPENDENCIES": json.dumps(dev_dependencies, indent=2, sort_keys=True),
        "SCRIPTS": json.dumps(scripts, indent=2),
    }
