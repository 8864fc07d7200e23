"""YAML-backed tool listing and pip-backed package installation."""

from __future__ import annotations

import subprocess
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Dict, Sequence

import yaml

from toolcall.domain.tools import ToolRecord, ToolScope
from toolcall.errors import GracefulError, ToolUpdateError
from toolcall.ports.tool_repository import PackageInstaller, ToolRepository

LOCAL_MANIFEST = Path(".config") / "toolcall-tools.yaml"


def _load_tools(path: Path) -> Dict[str, Dict[str, Any]]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text("utf-8")) or {}
    except yaml.YAMLError as exc:
        raise GracefulError(f"Tool manifest {path} is not valid YAML: {exc}") from exc
    tools = data.get("tools", {}) if isinstance(data, dict) else {}
    if not isinstance(tools, dict):
        raise GracefulError(f"Invalid tool manifest {path}: tools is not a mapping")
    result: Dict[str, Dict[str, Any]] = {}
    for tool_id, payload in tools.items():
        result[str(tool_id)] = payload if isinstance(payload, dict) else {}
    return result


def _store_tools(path: Path, tools: Dict[str, Dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump({"version": 1, "tools": tools}, sort_keys=False), encoding="utf-8")


def discover_manifests(start: Path) -> list[Path]:
    """Manifests from ``start`` up to the filesystem root, nearest first."""

    found: list[Path] = []
    current = start.expanduser().resolve()
    for directory in (current, *current.parents):
        candidate = directory / LOCAL_MANIFEST
        if candidate.is_file():
            found.append(candidate)
    return found


class YamlToolRepository(ToolRepository):
    def __init__(self, registry_file: Path, working_dir: Path | None = None) -> None:
        self._registry_file = registry_file
        self._working_dir = working_dir

    def list_global(self) -> Sequence[ToolRecord]:
        tools = _load_tools(self._registry_file)
        return [
            ToolRecord(tool_id=tool_id, scope=ToolScope.GLOBAL, version=_version_of(payload))
            for tool_id, payload in tools.items()
        ]

    def list_local(self, manifest: Path | None = None) -> Sequence[ToolRecord]:
        if manifest is not None:
            manifest = manifest.expanduser().resolve()
            if not manifest.is_file():
                raise GracefulError(f"Tool manifest {manifest} does not exist.")
            manifests = [manifest]
        else:
            manifests = discover_manifests(self._working_dir or Path.cwd())
        records: list[ToolRecord] = []
        seen: set[str] = set()
        for path in manifests:
            for tool_id, payload in _load_tools(path).items():
                if tool_id in seen:
                    continue
                seen.add(tool_id)
                records.append(
                    ToolRecord(
                        tool_id=tool_id,
                        scope=ToolScope.LOCAL,
                        manifest_path=str(path),
                        version=_version_of(payload),
                    )
                )
        return records

    def record(self, record: ToolRecord, version: str) -> None:
        if record.scope is ToolScope.GLOBAL:
            path = self._registry_file
        elif record.manifest_path:
            path = Path(record.manifest_path)
        else:
            path = (self._working_dir or Path.cwd()) / LOCAL_MANIFEST
        tools = _load_tools(path)
        entry = dict(tools.get(record.tool_id, {}))
        entry["version"] = version
        tools[record.tool_id] = entry
        _store_tools(path, tools)


def _version_of(payload: Dict[str, Any]) -> str | None:
    value = payload.get("version")
    return str(value) if value is not None else None


class PipPackageInstaller(PackageInstaller):
    """Installs tool packages into the running interpreter with pip."""

    def install(self, package_id: str, version: str | None = None) -> str:
        requirement = f"{package_id}=={version}" if version else package_id
        command = [sys.executable, "-m", "pip", "install", "--upgrade", requirement]
        result = subprocess.run(command, capture_output=True)
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise ToolUpdateError(
                f"Tool '{package_id}' failed to install (pip exit code {result.returncode}).",
                verbose_message=stderr or None,
            )
        try:
            return metadata.version(package_id)
        except metadata.PackageNotFoundError as exc:
            raise ToolUpdateError(f"Tool '{package_id}' was installed but its version could not be read.") from exc


__all__ = ["LOCAL_MANIFEST", "PipPackageInstaller", "YamlToolRepository", "discover_manifests"]
