"""
Missing-code substitution.
"""

import numpy as np

from ..schema.notation import INTEGER, SINGLE, parse_range_notation


def missing_code_pool(text, numeric=True):
    """Literals a missing-code row may write.

    ``"[997,999]"`` enumerates to ``(997, 998, 999)``; a plain number is a
    one-element pool; anything else (``"NA::a"``, ``"NA(b)"``) is written as
    text.
    """
    token = parse_range_notation(text)
    if token is not None and token.kind == INTEGER:
        values = token.values
    elif token is not None and token.kind == SINGLE:
        value = token.lower
        values = (int(value) if float(value).is_integer() else value,)
    else:
        return (text,)
    if numeric:
        return tuple(float(value) for value in values)
    return tuple(str(value) for value in values)


def _result_dtype(values, pools):
    literals = [item for pool in pools for item in pool]
    numeric = all(isinstance(item, (int, float)) for item in literals)
    if numeric and np.asarray(values).dtype.kind in "fiu":
        return float
    return object


def inject_missing(values, n, missing_weights, missing_codes, rng, n_missing=None):
    """Place missing codes into an ``n``-row column.

    ``values`` holds either the ``n_valid`` population draws (they fill the
    non-missing slots in order) or ``n`` row-aligned values (the chosen slots
    are overwritten). ``missing_weights`` maps a code label to its normalized
    weight and ``missing_codes`` maps the same label to its literal pool.

    Returns ``(column, missing_mask)``.
    """
    values = np.asarray(values)
    aligned = values.size == n
    if n_missing is None:
        n_missing = 0 if aligned else n - values.size
    n_missing = int(max(0, min(n, n_missing)))

    labels = [label for label, weight in missing_weights.items() if weight > 0]
    pools = [missing_codes.get(label, (label,)) for label in labels]
    dtype = _result_dtype(values, pools)

    mask = np.zeros(n, dtype=bool)
    if n_missing == 0:
        column = values.astype(dtype, copy=True)
        if not aligned and column.size != n:
            raise ValueError(
                f"Got {column.size} values for {n} rows without missing codes"
            )
        return column, mask

    slots = np.sort(rng.choice(n, size=n_missing, replace=False))
    mask[slots] = True

    if aligned:
        column = values.astype(dtype, copy=True)
    else:
        column = np.empty(n, dtype=dtype)
        column[~mask] = values

    if not labels:
        column[slots] = np.nan
        return column, mask

    weights = np.asarray([missing_weights[label] for label in labels], dtype=float)
    weights = weights / weights.sum()
    assigned = rng.choice(len(labels), size=n_missing, p=weights)
    for slot, label_index in zip(slots, assigned):
        pool = pools[label_index]
        if len(pool) == 1:
            column[slot] = pool[0]
        else:
            column[slot] = pool[int(rng.integers(0, len(pool)))]
    return column, mask
