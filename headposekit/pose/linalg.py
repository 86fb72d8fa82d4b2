from __future__ import annotations
import numpy as np

PIVOT_EPS = 1e-10

def solve6x6(A, b, pivot_eps: float = PIVOT_EPS):
    """
    Gaussian elimination with partial pivoting for a 6x6 system A x = b.
    Returns x (6,) or None when a pivot falls below pivot_eps (singular).
    """
    M = np.array(A, dtype=np.float64).reshape(6, 6)
    B = np.array(b, dtype=np.float64).reshape(6)
    n = 6

    for i in range(n):
        p = i + int(np.argmax(np.abs(M[i:, i])))
        if p != i:
            M[[i, p]] = M[[p, i]]
            B[[i, p]] = B[[p, i]]

        if abs(M[i, i]) < pivot_eps:
            return None

        for k in range(i + 1, n):
            c = M[k, i] / M[i, i]
            M[k, i:] -= c * M[i, i:]
            B[k] -= c * B[i]

    x = np.zeros(n)
    for i in range(n - 1, -1, -1):
        x[i] = (B[i] - M[i, i+1:] @ x[i+1:]) / M[i, i]
    return x
