#!/usr/bin/env python3
"""Render the keyword relationship graph for a page payload as SVG."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from kwgraph.config import ConfigError, load_config
from kwgraph.contracts import ExtractionPayload
from kwgraph.text.index import KeywordIndex
from kwgraph.text.sentences import split_sentences
from kwgraph.ui.service import VisualizerService

LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments for the renderer.

    Returns:
        argparse.Namespace: Parsed command line arguments.
    """
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("payload", type=Path, help="JSON file with 'text' and 'keywords'")
    selection = parser.add_mutually_exclusive_group(required=True)
    selection.add_argument("--keyword", help="Keyword to centre the graph on")
    selection.add_argument("--sentence", type=int, help="Sentence index to graph")
    parser.add_argument("--output", type=Path, default=Path("graph.svg"), help="SVG destination")
    parser.add_argument("--width", type=int, default=800, help="Surface width in pixels (default: 800)")
    parser.add_argument("--height", type=int, default=600, help="Surface height in pixels (default: 600)")
    parser.add_argument("--scale", type=float, default=None, help="Fixed scale factor (default: fit)")
    parser.add_argument("--config", type=Path, default=None, help="Alternative config.yaml")
    return parser.parse_args(argv)


def load_payload(path: Path) -> ExtractionPayload:
    """Read and validate a keyword payload file."""

    with path.open("r", encoding="utf-8") as handle:
        raw = json.load(handle)
    return ExtractionPayload.model_validate(raw)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the renderer.

    Returns:
        int: Exit status code where ``0`` indicates success.
    """
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    args = parse_args(argv)

    try:
        config = load_config(args.config)
        payload = load_payload(args.payload)
    except (ConfigError, OSError, json.JSONDecodeError, ValidationError) as exc:
        print(f"Unable to load input: {exc}", file=sys.stderr)
        return 1

    index = KeywordIndex.build(split_sentences(payload.text), payload.keywords)
    service = VisualizerService(config=config)
    service.load_index(index)

    if args.keyword is not None:
        if not index.sentences_with(args.keyword):
            print(f"Keyword not found in any sentence: {args.keyword}", file=sys.stderr)
            return 1
        service.select_keyword(args.keyword)
    else:
        try:
            service.show_sentence(args.sentence)
        except IndexError:
            print(f"Sentence index out of range: {args.sentence} (have {len(index)})", file=sys.stderr)
            return 1

    surface = service.render(args.width, args.height, args.scale)
    surface.write(args.output)
    build = service.last_build
    if build is not None:
        print(
            "Rendered keyword graph",
            f"nodes={build.nodes_created}",
            f"depth={build.max_depth}",
            f"output={args.output}",
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
