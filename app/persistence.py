"""
Export / import of the whole dataset.

Tiers, tried in order:
  1. native  – a FilePicker hands us a path to write to or read from
  2. copy    – the JSON is shown read-only with a copy action
  3. paste   – the user pastes JSON back in and confirms

The backend is chosen once, from what the environment offers. A native
backend that turns out to be blocked (EnvironmentUnsupportedError) drops to
the copy/paste tier for that call. Nothing here touches the in-memory
dataset: a successful load only *returns* the new Dataset.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol

from pydantic import BaseModel, ValidationError

from app.errors import EnvironmentUnsupportedError, InvalidFormatError, UserCancelledError
from app.models import Dataset

logger = logging.getLogger("tracker.persistence")


class SaveStatus(str, Enum):
    SAVED = "saved"
    CANCELLED = "cancelled"
    COPY_MODAL = "copy_modal"
    FAILED = "failed"


class LoadStatus(str, Enum):
    LOADED = "loaded"
    CANCELLED = "cancelled"
    PASTE_MODAL = "paste_modal"
    INVALID = "invalid"
    FAILED = "failed"


class SaveResult(BaseModel):
    status: SaveStatus
    message: str
    json_text: Optional[str] = None
    path: Optional[str] = None


class LoadResult(BaseModel):
    status: LoadStatus
    message: str
    dataset: Optional[Dataset] = None


# ── codec ─────────────────────────────────────────────────────────────────────

def dump_dataset(dataset: Dataset) -> str:
    return dataset.model_dump_json(by_alias=True, indent=2)


def parse_dataset(text: str) -> Dataset:
    """Parse and schema-check an export. Raises InvalidFormatError."""
    try:
        # exports are camelCase only; snake_case field names are not accepted here
        return Dataset.model_validate_json(text, by_alias=True, by_name=False)
    except ValidationError as exc:
        bad_json = any(e["type"] == "json_invalid" for e in exc.errors())
        raise InvalidFormatError(str(exc), bad_json=bad_json) from exc


# ── environment collaborators ─────────────────────────────────────────────────

class FilePicker(Protocol):
    def pick_save_path(self, suggested_name: str) -> Path:
        """Raise UserCancelledError if dismissed, EnvironmentUnsupportedError if blocked."""
        ...

    def pick_open_path(self) -> Path: ...


class Clipboard(Protocol):
    def copy(self, text: str) -> None: ...


class DirectoryFilePicker:
    """Server-side picker: always the same file in a configured directory."""

    def __init__(self, directory: Path, filename: str) -> None:
        self.directory = Path(directory)
        self.filename = filename

    def pick_save_path(self, suggested_name: str) -> Path:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except PermissionError as exc:
            raise EnvironmentUnsupportedError(f"Cannot write to {self.directory}") from exc
        return self.directory / (self.filename or suggested_name)

    def pick_open_path(self) -> Path:
        return self.directory / self.filename


class MemoryClipboard:
    def __init__(self) -> None:
        self.text: Optional[str] = None

    def copy(self, text: str) -> None:
        self.text = text


# ── backends ──────────────────────────────────────────────────────────────────

class PersistenceBackend(ABC):
    @abstractmethod
    def save(self, dataset: Dataset) -> SaveResult: ...

    @abstractmethod
    def load(self) -> LoadResult: ...


class NativeFileBackend(PersistenceBackend):
    suggested_name = "yard_sale_data.json"

    def __init__(self, picker: FilePicker) -> None:
        self.picker = picker

    def save(self, dataset: Dataset) -> SaveResult:
        try:
            path = self.picker.pick_save_path(self.suggested_name)
            path.write_text(dump_dataset(dataset), encoding="utf-8")
        except UserCancelledError:
            return SaveResult(status=SaveStatus.CANCELLED, message="Save operation cancelled.")
        except PermissionError as exc:
            raise EnvironmentUnsupportedError(str(exc)) from exc
        except OSError as exc:
            logger.error("saving data failed: %s", exc)
            return SaveResult(status=SaveStatus.FAILED, message=f"Error saving data: {exc}")
        logger.info("saved dataset to %s", path)
        return SaveResult(status=SaveStatus.SAVED, message="Data saved successfully!", path=str(path))

    def load(self) -> LoadResult:
        try:
            path = self.picker.pick_open_path()
            text = path.read_text(encoding="utf-8")
        except UserCancelledError:
            return LoadResult(status=LoadStatus.CANCELLED, message="Load operation cancelled.")
        except PermissionError as exc:
            raise EnvironmentUnsupportedError(str(exc)) from exc
        except OSError as exc:
            logger.error("loading data failed: %s", exc)
            return LoadResult(
                status=LoadStatus.FAILED,
                message=f"Error loading data: {exc}. Make sure it's a valid Yard Sale JSON file.",
            )
        try:
            dataset = parse_dataset(text)
        except InvalidFormatError as exc:
            logger.warning("rejected file %s: %s", path, exc)
            return LoadResult(status=LoadStatus.INVALID, message="Invalid data format in file.")
        return LoadResult(status=LoadStatus.LOADED, message="Data loaded successfully!", dataset=dataset)


class ModalBackend(PersistenceBackend):
    """Copy/paste fallback. Saving hands back the JSON; loading opens the paste box."""

    def __init__(self, reason: str = "Direct file access is not available.") -> None:
        self.reason = reason

    def save(self, dataset: Dataset) -> SaveResult:
        return SaveResult(
            status=SaveStatus.COPY_MODAL,
            message=f"{self.reason} Copy data to clipboard instead.",
            json_text=dump_dataset(dataset),
        )

    def load(self) -> LoadResult:
        return LoadResult(
            status=LoadStatus.PASTE_MODAL,
            message=f"{self.reason} Please paste data below.",
        )


def select_backend(picker: Optional[FilePicker]) -> PersistenceBackend:
    if picker is None:
        return ModalBackend()
    return NativeFileBackend(picker)


# ── gateway ───────────────────────────────────────────────────────────────────

class PersistenceGateway:
    def __init__(self, backend: PersistenceBackend, clipboard: Optional[Clipboard] = None) -> None:
        self.backend = backend
        self.clipboard = clipboard
        # modal state: text shown in the copy box, and whether the paste box is open
        self.save_modal_text: Optional[str] = None
        self.load_modal_open = False

    def save(self, dataset: Dataset) -> SaveResult:
        try:
            result = self.backend.save(dataset)
        except EnvironmentUnsupportedError as exc:
            logger.info("direct save blocked (%s), falling back to copy", exc)
            result = ModalBackend("Direct file saving not allowed.").save(dataset)
        if result.status == SaveStatus.COPY_MODAL:
            self.save_modal_text = result.json_text
        elif result.status == SaveStatus.SAVED:
            self.save_modal_text = None
        return result

    def load(self) -> LoadResult:
        try:
            result = self.backend.load()
        except EnvironmentUnsupportedError as exc:
            logger.info("direct load blocked (%s), falling back to paste", exc)
            result = ModalBackend("Direct file loading not allowed.").load()
        if result.status == LoadStatus.PASTE_MODAL:
            self.load_modal_open = True
        elif result.status == LoadStatus.LOADED:
            self.load_modal_open = False
        return result

    def load_from_text(self, text: str) -> LoadResult:
        try:
            dataset = parse_dataset(text)
        except InvalidFormatError as exc:
            logger.warning("rejected pasted data: %s", exc)
            if exc.bad_json:
                message = "Invalid JSON format. Please check your pasted data."
            else:
                message = "Invalid data format in pasted JSON."
            return LoadResult(status=LoadStatus.INVALID, message=message)
        self.load_modal_open = False
        return LoadResult(
            status=LoadStatus.LOADED,
            message="Data loaded successfully from pasted JSON!",
            dataset=dataset,
        )

    def copy_to_clipboard(self) -> str:
        if self.save_modal_text is None or self.clipboard is None:
            return "Failed to copy data to clipboard. Please copy manually."
        try:
            self.clipboard.copy(self.save_modal_text)
        except OSError as exc:
            logger.warning("clipboard copy failed: %s", exc)
            return "Failed to copy data to clipboard. Please copy manually."
        return "Data copied to clipboard!"

    def close_save_modal(self) -> None:
        self.save_modal_text = None

    def close_load_modal(self) -> None:
        self.load_modal_open = False
