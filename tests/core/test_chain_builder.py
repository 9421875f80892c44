from __future__ import annotations

import random

from navload.core.runtime import ChainBuilder
from navload.preload import Batch, Descriptor, LoadOptions, Single


async def _noop() -> None:
    return None


def _descriptor(name: str, *, blocking: bool = True) -> Descriptor:
    return Descriptor(task=_noop, options=LoadOptions(blocking=blocking), name=name)


def _names(chain) -> list:
    shape = []
    for stage in chain.stages:
        if isinstance(stage, Single):
            shape.append(stage.descriptor.name)
        else:
            shape.append(tuple(d.name for d in stage.descriptors))
    return shape


def test_non_blocking_neighbours_are_grouped_between_blocking_stages():
    chain = ChainBuilder().build(
        [
            _descriptor("A"),
            _descriptor("B", blocking=False),
            _descriptor("C", blocking=False),
            _descriptor("D"),
        ]
    )

    assert _names(chain) == ["A", ("B", "C"), "D"]
    assert isinstance(chain.stages[0], Single)
    assert isinstance(chain.stages[1], Batch)
    assert isinstance(chain.stages[2], Single)
    assert chain.task_count == 4


def test_empty_descriptor_list_builds_empty_chain():
    chain = ChainBuilder().build([])

    assert not chain
    assert len(chain) == 0
    assert chain.stages == ()


def test_trailing_non_blocking_descriptors_are_flushed_as_final_batch():
    chain = ChainBuilder().build(
        [
            _descriptor("A"),
            _descriptor("B", blocking=False),
        ]
    )

    assert _names(chain) == ["A", ("B",)]
    assert isinstance(chain.stages[-1], Batch)


def test_only_non_blocking_descriptors_make_one_batch():
    chain = ChainBuilder().build(
        [_descriptor(name, blocking=False) for name in "XYZ"]
    )

    assert _names(chain) == [("X", "Y", "Z")]


def test_random_descriptor_lists_never_produce_adjacent_batches():
    random.seed(11)
    builder = ChainBuilder()

    for _ in range(300):
        size = random.randint(0, 12)
        descriptors = [
            _descriptor(f"t{i}", blocking=random.random() < 0.4) for i in range(size)
        ]
        chain = builder.build(descriptors)

        for left, right in zip(chain.stages, chain.stages[1:]):
            assert not (isinstance(left, Batch) and isinstance(right, Batch))

        flattened = []
        for stage in chain.stages:
            if isinstance(stage, Single):
                flattened.append(stage.descriptor)
            else:
                assert stage.descriptors
                flattened.extend(stage.descriptors)
        assert flattened == descriptors
