"""Site generator: walks the input tree, runs every file through the processor chain, writes the output tree"""

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Optional

from sitepub.core.errors import SiteGeneratorError
from sitepub.core.models import SiteFile
from sitepub.core.processors import FileProcessor


logger = logging.getLogger(__name__)

EXCLUDE_PREFIX = "_"

GeneratedCallback = Callable[[SiteFile], None]


class SiteGenerator:
    """Transforms the files under `input_dir` via `processors` and writes the results below `output_dir`.

    Files and directories whose name starts with '_' are skipped together with
    everything below them. When a file fails, generation stops with a
    SiteGeneratorError and files written up to that point are left in place.
    """

    def __init__(
        self,
        input_dir: Path,
        output_dir: Path,
        processors: Optional[Iterable[FileProcessor]] = None,
        ):
        self.input_dir = Path(os.path.abspath(input_dir))
        self.output_dir = Path(os.path.abspath(output_dir))
        self.processors: list[FileProcessor] = list(processors or [])

    def add_processor(self, processor: FileProcessor) -> None:
        """Append a processor to the end of the chain."""
        self.processors.append(processor)

    def _mirror(self, input_path: Path) -> Path:
        """Swap the input root prefix of input_path for the output root."""
        return self.output_dir / Path(os.path.abspath(input_path)).relative_to(self.input_dir)

    def output_path_for(self, input_path: Path) -> Path:
        """Return the path the output for input_path is written to.

        The input root is replaced by the output root, then the file name goes through
        each processor's `process_output_file_name` in registration order.
        """
        output = self._mirror(input_path)
        name = output.name
        for processor in self.processors:
            name = processor.process_output_file_name(name)
        return output.with_name(name)

    def generate(self, callback: Optional[GeneratedCallback] = None) -> int:
        """Run one full pass over the input tree. Returns the number of files written."""
        logger.info("Generating %s -> %s", self.input_dir, self.output_dir)
        return self._generate(self.input_dir, callback)

    def _generate(self, path: Path, callback: Optional[GeneratedCallback]) -> int:
        if path.name.startswith(EXCLUDE_PREFIX) or not path.exists():
            return 0

        if path.is_dir():
            out_dir = self._mirror(path)
            try:
                out_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise SiteGeneratorError(f"Couldn't create output directory {out_dir}: {e}") from e
            try:
                children = sorted(path.iterdir())
            except OSError as e:
                raise SiteGeneratorError(f"Couldn't read directory {path}: {e}") from e
            return sum(self._generate(child, callback) for child in children)

        try:
            content = path.read_bytes()
        except FileNotFoundError:
            return 0  # removed since the directory was listed
        except OSError as e:
            raise SiteGeneratorError(f"Couldn't generate output for file {path}: {e}") from e

        try:
            file = SiteFile(input=path, output=self.output_path_for(path), content=content)
            for processor in self.processors:
                processor.process(file)
            file.output.parent.mkdir(parents=True, exist_ok=True)
            file.output.write_bytes(file.content)
        except Exception as e:
            raise SiteGeneratorError(f"Couldn't generate output for file {path}: {e}") from e

        logger.debug("  %s -> %s", path, file.output)
        if callback is not None:
            callback(file)
        return 1
