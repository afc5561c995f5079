"""Minute-of-day interval arithmetic.

All functions are pure. Inputs need not be normalized; outputs always are:
sorted ascending by start with overlapping or touching blocks fused.
"""

from typing import Iterable, Optional

from supervisionplanner.domain.models import TimeBlock


def normalize(blocks: Iterable[TimeBlock]) -> list[TimeBlock]:
    """Sort blocks and fuse any that overlap or touch."""
    merged: list[TimeBlock] = []
    for blk in sorted(blocks, key=lambda b: (b.start, b.end)):
        if merged and blk.start <= merged[-1].end:
            last = merged[-1]
            if blk.end > last.end:
                merged[-1] = TimeBlock(last.start, blk.end)
        else:
            merged.append(blk)
    return merged


def intersect(a: Iterable[TimeBlock], b: Iterable[TimeBlock]) -> list[TimeBlock]:
    """Pairwise intersection of two block lists."""
    b = list(b)
    pieces = []
    for x in a:
        for y in b:
            start = max(x.start, y.start)
            end = min(x.end, y.end)
            if end > start:
                pieces.append(TimeBlock(start, end))
    return normalize(pieces)


def subtract(avail: Iterable[TimeBlock], block: TimeBlock) -> list[TimeBlock]:
    """Remove block from every interval of avail."""
    out = []
    for a in avail:
        if block.end <= a.start or block.start >= a.end:
            out.append(a)
            continue
        if block.start > a.start:
            out.append(TimeBlock(a.start, block.start))
        if block.end < a.end:
            out.append(TimeBlock(block.end, a.end))
    return normalize(out)


def subtract_all(avail: Iterable[TimeBlock], blocks: Iterable[TimeBlock]) -> list[TimeBlock]:
    """Remove every block in blocks from avail."""
    result = normalize(avail)
    for blk in blocks:
        if not result:
            break
        result = subtract(result, blk)
    return result


def total_minutes(blocks: Iterable[TimeBlock]) -> int:
    """Sum of block lengths."""
    return sum(b.end - b.start for b in blocks)


def containing(blocks: Iterable[TimeBlock], minute: int) -> Optional[TimeBlock]:
    """First block (in start order) whose closed range covers minute."""
    for blk in sorted(blocks, key=lambda b: b.start):
        if blk.start <= minute <= blk.end:
            return blk
    return None
