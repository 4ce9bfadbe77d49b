"""
Report formatters.

A formatter is any object with format(result, groups), where groups maps a
group name to the list of SourceFile objects in it (or is None).
"""

import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET


def relative_path(filepath: str, source_root: Optional[Path]) -> str:
    if source_root and filepath.startswith(str(source_root) + os.sep):
        return filepath[len(str(source_root)) + 1:]
    return filepath


def group_percent(files) -> float:
    covered = sum(len(f.covered_lines) for f in files)
    relevant = sum(len(f.relevant_lines) for f in files)
    return (covered / relevant * 100) if relevant else 100.0


class SimpleFormatter:
    """Plain text summary, one section per group."""

    def __init__(self, stream=None, source_root: Optional[Path] = None):
        self.stream = stream
        self.source_root = source_root

    def format(self, result, groups=None) -> str:
        if not groups:
            groups = {"All Files": list(result.files)}

        out = []
        out.append("=" * 80)
        out.append(f"COVERAGE REPORT: {result.command_name}")
        out.append("=" * 80)
        for name, files in groups.items():
            out.append("")
            out.append(f"{name} ({group_percent(files):.1f}% covered, {len(files)} files)")
            out.append("-" * 80)
            for f in files:
                filename = relative_path(f.path, self.source_root)
                out.append(
                    f"  {filename:50s} {f.covered_percent:5.1f}%  "
                    f"{len(f.covered_lines)}/{f.lines_of_code} lines"
                )
        out.append("")
        out.append("=" * 80)
        out.append(
            f"Total: {result.covered_percent:.1f}% "
            f"({result.covered_lines}/{result.total_lines} lines)"
        )
        out.append("=" * 80)

        text = "\n".join(out) + "\n"
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write(text)
        return text


class CoberturaFormatter:
    """Cobertura XML report, one package per group."""

    def __init__(self, output_path, source_root: Optional[Path] = None):
        self.output_path = Path(output_path)
        self.source_root = Path(source_root) if source_root else None

    def format(self, result, groups=None) -> Path:
        if not groups:
            groups = {"linecov": list(result.files)}

        coverage = ET.Element("coverage")
        coverage.set("version", "1.0")
        coverage.set("timestamp", str(int(datetime.now().timestamp() * 1000)))
        coverage.set("lines-valid", str(result.total_lines))
        coverage.set("lines-covered", str(result.covered_lines))
        coverage.set("line-rate", f"{result.covered_percent / 100:.4f}")
        coverage.set("branches-valid", "0")
        coverage.set("branches-covered", "0")
        coverage.set("branch-rate", "0")
        coverage.set("complexity", "0")

        sources = ET.SubElement(coverage, "sources")
        source = ET.SubElement(sources, "source")
        source.text = str(self.source_root) if self.source_root else "."

        packages = ET.SubElement(coverage, "packages")
        for name, files in groups.items():
            pkg = ET.SubElement(packages, "package")
            pkg.set("name", name)
            pkg.set("line-rate", f"{group_percent(files) / 100:.4f}")
            pkg.set("branch-rate", "0")
            pkg.set("complexity", "0")
            classes = ET.SubElement(pkg, "classes")

            for f in files:
                rel_path = relative_path(f.path, self.source_root)
                cls = ET.SubElement(classes, "class")
                cls.set("name", Path(rel_path).name)
                cls.set("filename", rel_path)
                cls.set("line-rate", f"{f.covered_percent / 100:.4f}")
                cls.set("branch-rate", "0")
                cls.set("complexity", "0")

                ET.SubElement(cls, "methods")
                lines_elem = ET.SubElement(cls, "lines")
                for line_no in f.relevant_lines:
                    line_elem = ET.SubElement(lines_elem, "line")
                    line_elem.set("number", str(line_no))
                    line_elem.set("hits", str(f.coverage[line_no - 1]))

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        tree = ET.ElementTree(coverage)
        ET.indent(tree, space="  ")
        tree.write(self.output_path, encoding="utf-8", xml_declaration=True)
        return self.output_path


class MultiFormatter:
    """Runs several formatters over the same result."""

    def __init__(self, formatters):
        self.formatters = list(formatters)

    def format(self, result, groups=None) -> list:
        return [formatter.format(result, groups) for formatter in self.formatters]
