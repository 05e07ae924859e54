"""Formal engine invariants.

This file documents what each engine MUST produce. Use it as a reviewer
anchor and system reference.
"""

ENGINE_INVARIANTS = {
    "executor": [
        "Partitions are contiguous, disjoint and cover [0, count)",
        "Every output element is written by exactly one worker",
        "No partial results: the first worker failure is re-raised after the join",
    ],

    "filter": [
        "Output shape and dims equal the input's",
        "Median filters keep the input type, mean filters produce float64",
        "Edge windows are clamped inside [0, extent), never wrapped or padded",
    ],

    "collapse": [
        "Output has one axis fewer (1-D input gives one element)",
        "Coordinates along the removed axis are dropped",
        "Zero contributing values give a blank, except for counts (0)",
        "Fill variants never keep more values than their plain counterpart",
    ],

    "morphology": [
        "Inputs are uint8, connectivity is within 1..ndim",
        "Binary outputs hold only 0 and 1",
        "Labels: 0=background, 1..N=components, int32",
    ],

    "evaluator": [
        "Exactly one result remains unless all results were requested",
        "Variables resolve to a copy taken when they were set",
    ],
}
