"""Scenario collaborator interface and temporary input files.

The runner never builds SIPp scenario XML itself. It consumes any object that
satisfies the ``Scenario`` protocol: a mapping of scenario options plus a way
to materialize the scenario (and optional media) as temporary files.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import IO, Any, Protocol, runtime_checkable

__all__ = [
    "Scenario",
    "InputFiles",
    "StaticScenario",
    "SCENARIO_OPTION_KEYS",
    "discard_files",
]

logger = logging.getLogger(__name__)

# Scenario options consumed by the command builder
SCENARIO_OPTION_KEYS = frozenset({
    "destination",
    "source",
    "max_concurrent",
    "number_of_calls",
    "calls_per_second",
    "from_user",
})


def discard_files(files: Mapping[str, IO[Any]]) -> None:
    """Close and delete every file in ``files``.

    Each file is handled on its own, so one failing ``close()`` does not
    leave the others behind. The first error is re-raised afterwards.
    """
    errors: list[BaseException] = []
    for key, handle in files.items():
        path = Path(handle.name)
        try:
            handle.close()
        except Exception as e:
            logger.warning(f"Failed to close input file {key}={path}: {e}")
            errors.append(e)
        try:
            path.unlink(missing_ok=True)
        except Exception as e:
            logger.warning(f"Failed to remove input file {key}={path}: {e}")
            errors.append(e)
        else:
            logger.debug(f"Removed input file {key}={path}")

    if errors:
        raise errors[0]


class InputFiles(Mapping[str, IO[Any]]):
    """Named temporary input files for one SIPp invocation.

    ``scenario`` is required; other entries (e.g. ``media``) are optional.
    ``close_and_unlink()`` closes and deletes every file once; later calls
    are no-ops.
    """

    def __init__(self, files: Mapping[str, IO[Any]]) -> None:
        if "scenario" not in files:
            raise ValueError("input files must include a 'scenario' entry")
        self._files = dict(files)
        self._cleaned = False

    def __getitem__(self, key: str) -> IO[Any]:
        return self._files[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def path(self, key: str) -> Path:
        """Filesystem path of a named input file."""
        return Path(self._files[key].name)

    @property
    def paths(self) -> list[Path]:
        return [self.path(key) for key in self._files]

    @property
    def cleaned(self) -> bool:
        return self._cleaned

    def close_and_unlink(self) -> None:
        """Close and delete every input file.

        Raises:
            OSError: The first close/unlink failure, after every file was tried
        """
        if self._cleaned:
            return
        self._cleaned = True
        discard_files(self._files)


@runtime_checkable
class Scenario(Protocol):
    """What the runner needs from a scenario."""

    @property
    def scenario_options(self) -> Mapping[str, Any]:
        ...

    def to_tmpfiles(self) -> InputFiles | Mapping[str, IO[Any]]:
        ...


class StaticScenario:
    """A scenario whose XML (and optional media) is already rendered.

    Example:
        scenario = StaticScenario(
            xml_text,
            destination="10.0.0.5",
            source="10.0.0.4",
            max_concurrent=10,
            number_of_calls=100,
            calls_per_second=5,
        )
        Runner(scenario).run_sync()
    """

    def __init__(
        self,
        xml: str,
        media: bytes | None = None,
        name: str = "scenario",
        **scenario_options: Any,
    ) -> None:
        unknown = sorted(set(scenario_options) - SCENARIO_OPTION_KEYS)
        if unknown:
            raise TypeError(f"Unknown scenario option(s): {', '.join(unknown)}")
        self.xml = xml
        self.media = media
        self.name = name
        self._scenario_options = dict(scenario_options)

    @classmethod
    def from_file(cls, path: str | Path, **scenario_options: Any) -> "StaticScenario":
        """Load scenario XML from disk."""
        path = Path(path)
        media_path = path.with_suffix(".pcap")
        media = media_path.read_bytes() if media_path.exists() else None
        return cls(
            path.read_text(encoding="utf-8"),
            media=media,
            name=path.stem,
            **scenario_options,
        )

    @property
    def scenario_options(self) -> dict[str, Any]:
        return self._scenario_options

    def to_tmpfiles(self) -> InputFiles:
        """Write the scenario to named temp files the caller must clean up."""
        files: dict[str, IO[Any]] = {}
        try:
            scenario_file = tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                prefix=f"{self.name}-",
                suffix=".xml",
                delete=False,
            )
            files["scenario"] = scenario_file
            scenario_file.write(self.xml)
            scenario_file.flush()

            if self.media is not None:
                media_file = tempfile.NamedTemporaryFile(
                    mode="wb",
                    prefix=f"{self.name}-",
                    suffix=".pcap",
                    delete=False,
                )
                files["media"] = media_file
                media_file.write(self.media)
                media_file.flush()
        except BaseException:
            discard_files(files)
            raise

        return InputFiles(files)
