import numpy as np, cv2
from headposekit.pose.rodrigues import rotation_vector_to_matrix, rotation_matrix_to_vector

def test_zero_vector_is_identity():
    R = rotation_vector_to_matrix([0.0, 0.0, 0.0])
    assert np.array_equal(R, np.eye(3))

def test_tiny_vector_is_identity():
    assert np.array_equal(rotation_vector_to_matrix([1e-12, 0, 0]), np.eye(3))

def test_orthonormal():
    rng = np.random.default_rng(0)
    for rv in rng.uniform(-3, 3, size=(20,3)):
        R = rotation_vector_to_matrix(rv)
        assert np.allclose(R.T @ R, np.eye(3), atol=1e-9)
        assert abs(np.linalg.det(R) - 1.0) < 1e-9

def test_matches_opencv():
    for rv in ([0.1,-0.2,0.3], [1.0,0.0,0.0], [0.0,2.5,-0.4]):
        ref,_ = cv2.Rodrigues(np.array(rv, dtype=np.float64).reshape(3,1))
        assert np.allclose(rotation_vector_to_matrix(rv), ref, atol=1e-9)

def test_inverse_recovers_vector():
    for rv in ([0.1,-0.2,0.3], [1.2,0.4,-0.9], [0.0,0.0,0.0]):
        out = rotation_matrix_to_vector(rotation_vector_to_matrix(rv))
        assert np.allclose(out, rv, atol=1e-9)

def test_inverse_matches_opencv():
    R = rotation_vector_to_matrix([-0.7, 0.25, 1.1])
    ref,_ = cv2.Rodrigues(R)
    assert np.allclose(rotation_matrix_to_vector(R), ref.ravel(), atol=1e-8)

def test_inverse_near_pi():
    for rv in ([0.0, np.pi, 0.0], 3.14 * np.array([1.0, 2.0, 2.0]) / 3.0):
        R = rotation_vector_to_matrix(rv)
        out = rotation_matrix_to_vector(R)
        assert abs(np.linalg.norm(out) - np.linalg.norm(rv)) < 1e-6
        assert np.allclose(rotation_vector_to_matrix(out), R, atol=1e-8)
