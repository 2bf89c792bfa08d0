"""parallign CLI - Command-line interface for sentence alignment of parallel texts.

Primary Commands:
  - align: Align two line-per-sentence files and show or export the beads
  - stats: Show anchoring passes, coverage and bead type counts
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich import print
from rich.table import Table

from .config import LOG_LEVEL, AlignmentConfig, ConfigurationError
from .output import Output
from .parsers.sentences import TokenizedSentence, read_sentences
from .pipelines import align


logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = typer.Typer(add_completion=False, no_args_is_help=True)


def _load_texts(file_a: str, file_b: str) -> Tuple[List[TokenizedSentence], List[TokenizedSentence]]:
	try:
		return read_sentences(file_a), read_sentences(file_b)
	except FileNotFoundError as e:
		raise typer.BadParameter(str(e))


def _build_config(
	config_path: Optional[str],
	**overrides,
) -> AlignmentConfig:
	"""Combine an optional JSON config file with command-line overrides."""
	try:
		if config_path:
			p = Path(config_path)
			if not p.is_file():
				raise typer.BadParameter(f"--config file not found: {config_path}")
			base = AlignmentConfig.from_dict(json.loads(p.read_text(encoding="utf-8")))
		else:
			base = AlignmentConfig()
		return base.with_overrides(**overrides)
	except (ConfigurationError, json.JSONDecodeError) as e:
		raise typer.BadParameter(f"Invalid configuration: {e}")


def clip(s: str, width: int = 50) -> str:
	s = s.replace("\n", " ")
	return (s[: width - 1] + "…") if len(s) > width else s


def _bead_table(output: Output, limit: int) -> Table:
	shown = min(limit, len(output))
	table = Table(title=f"Beads (showing {shown} of {len(output)})")
	for col in ["#", "A", "B", "type", "cost", "text A", "text B"]:
		table.add_column(col)
	for k, (group_a, group_b) in enumerate(output.pairs()):
		if k >= limit:
			break
		bead = output[k]
		table.add_row(
			str(k),
			f"{bead.a_start}..{bead.a_end - 1}" if group_a else "-",
			f"{bead.b_start}..{bead.b_end - 1}" if group_b else "-",
			bead.kind + (" *" if bead.anchored else ""),
			f"{bead.cost:.3f}",
			clip(" ".join(str(s) for s in group_a)),
			clip(" ".join(str(s) for s in group_b)),
		)
	return table


@app.command(name="align")
def align_cmd(
	file_a: str = typer.Argument(..., help="First text, one sentence per line"),
	file_b: str = typer.Argument(..., help="Second text, one sentence per line"),
	config_path: Optional[str] = typer.Option(None, "--config", help="JSON file with AlignmentConfig fields"),
	max_iterations: Optional[int] = typer.Option(None, help="Maximum number of anchoring passes"),
	significance: Optional[float] = typer.Option(None, help="Initial significance threshold (0..1)"),
	min_freq: Optional[int] = typer.Option(None, help="Word frequency floor"),
	max_freq: Optional[int] = typer.Option(None, help="Word frequency ceiling"),
	band_scale: Optional[float] = typer.Option(None, help="Multiplier on the search band width"),
	min_envelope_size: Optional[int] = typer.Option(None, help="Stop refining envelopes smaller than this"),
	limit: int = typer.Option(50, help="Max beads to show"),
	show_anchors: bool = typer.Option(False, help="Show committed anchors"),
	json_out: Optional[str] = typer.Option(None, "--json-out", help="Write the full alignment as JSON"),
) -> None:
	"""Align two parallel texts and print the resulting beads."""
	text_a, text_b = _load_texts(file_a, file_b)
	config = _build_config(
		config_path,
		max_iterations=max_iterations,
		significance_threshold=significance,
		min_word_frequency=min_freq,
		max_word_frequency=max_freq,
		band_scale=band_scale,
		min_envelope_size=min_envelope_size,
	)

	print(f"[green]Loaded:[/green] {len(text_a)} sentences from A, {len(text_b)} sentences from B")
	print("[blue]Running anchoring passes + bead alignment...[/blue]")
	output = align(text_a, text_b, config)

	if show_anchors:
		anchor_table = Table(title=f"Anchors ({len(output.anchors)})")
		for col in ["A", "B", "score", "support", "pass"]:
			anchor_table.add_column(col)
		for anchor in output.anchors:
			anchor_table.add_row(
				str(anchor.a), str(anchor.b), f"{anchor.score:.3f}", str(anchor.support), str(anchor.iteration)
			)
		print(anchor_table)

	print(_bead_table(output, limit))

	if json_out:
		out = Path(json_out)
		out.parent.mkdir(parents=True, exist_ok=True)
		out.write_text(json.dumps(output.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
		print(f"[green]Saved alignment to[/green] {out}")


@app.command(name="stats")
def stats_cmd(
	file_a: str = typer.Argument(..., help="First text, one sentence per line"),
	file_b: str = typer.Argument(..., help="Second text, one sentence per line"),
	config_path: Optional[str] = typer.Option(None, "--config", help="JSON file with AlignmentConfig fields"),
	max_iterations: Optional[int] = typer.Option(None, help="Maximum number of anchoring passes"),
) -> None:
	"""Show anchoring passes, coverage and bead type counts."""
	text_a, text_b = _load_texts(file_a, file_b)
	config = _build_config(config_path, max_iterations=max_iterations)
	output = align(text_a, text_b, config)

	anchoring = output.metadata.get("anchoring", {})
	passes = Table(title=f"Anchoring passes (stop: {anchoring.get('stop_reason', '-')})")
	for col in ["pass", "significance", "floor", "envelopes", "candidates", "new anchors", "coverage"]:
		passes.add_column(col)
	for p in anchoring.get("passes", []):
		passes.add_row(
			str(p["iteration"]),
			f"{p['significance']:.2f}",
			str(p["frequency_floor"]),
			str(p["envelopes"]),
			str(p["candidates"]),
			str(p["new_anchors"]),
			f"{p['coverage']:.1%}",
		)
	print(passes)

	beads = output.metadata.get("bead_alignment", {})
	print({
		"anchors": len(output.anchors),
		"beads": len(output),
		"bead_types": beads.get("bead_types", {}),
		"expected_ratio": beads.get("expected_ratio"),
		"shared_vocabulary": anchoring.get("shared_vocabulary"),
	})


def main() -> None:
	app()


if __name__ == "__main__":
	main()
