import numpy as np
from headposekit.pose.linalg import solve6x6

def test_solves_known_system():
    rng = np.random.default_rng(1)
    A = rng.normal(size=(6,6)) + 6*np.eye(6)
    x = np.arange(1, 7, dtype=float)
    out = solve6x6(A, A @ x)
    assert out is not None
    assert np.allclose(out, x, atol=1e-9)

def test_needs_pivoting():
    # zero on the leading diagonal: only solvable with row swaps
    P = np.eye(6)[[1,0,3,2,5,4]] * np.array([2.,3.,4.,5.,6.,7.])[:,None]
    x = np.array([1.,-1.,2.,-2.,3.,-3.])
    assert np.allclose(solve6x6(P, P @ x), x)

def test_flat_row_major_input():
    A = np.diag([1.,2.,3.,4.,5.,6.])
    b = np.ones(6)
    assert np.allclose(solve6x6(A.ravel().tolist(), b.tolist()), 1.0 / np.diag(A))

def test_singular_zero_row_returns_none():
    A = np.eye(6); A[3] = 0.0
    assert solve6x6(A, np.ones(6)) is None

def test_inputs_untouched():
    rng = np.random.default_rng(2)
    A = rng.normal(size=(6,6)) + 6*np.eye(6); b = rng.normal(size=6)
    A0, b0 = A.copy(), b.copy()
    solve6x6(A, b)
    assert np.array_equal(A, A0) and np.array_equal(b, b0)
