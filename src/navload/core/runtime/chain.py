"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Chain builder: groups descriptors into sequential and concurrent stages.
"""

from __future__ import annotations

from typing import Iterable

from ...preload.types import Batch, Descriptor, PreloadChain, Single, Stage


class ChainBuilder:
    """Build a preload chain from an ordered descriptor list."""

    def build(self, descriptors: Iterable[Descriptor]) -> PreloadChain:
        """
        Group consecutive non-blocking descriptors into one ``Batch``.

        Blocking descriptors become ``Single`` stages that start only after
        the preceding batch settled. A trailing batch is flushed at the end,
        so two batches are never adjacent.
        """
        stages: list[Stage] = []
        pending: list[Descriptor] = []

        for descriptor in descriptors:
            if descriptor.options.blocking is False:
                pending.append(descriptor)
                continue
            if pending:
                stages.append(Batch(descriptors=tuple(pending)))
                pending = []
            stages.append(Single(descriptor=descriptor))

        if pending:
            stages.append(Batch(descriptors=tuple(pending)))

        return PreloadChain(stages=tuple(stages))
