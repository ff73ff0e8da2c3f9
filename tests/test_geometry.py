"""Tests for Vector3 and Matrix."""

import math

import numpy as np
import pytest

from leapstream.geometry import Matrix, Vector3


class TestVector3:
    def test_arithmetic(self):
        a = Vector3(1, 2, 3)
        b = Vector3(4, 5, 6)
        assert a + b == Vector3(5, 7, 9)
        assert b - a == Vector3(3, 3, 3)
        assert a * 2 == Vector3(2, 4, 6)
        assert -a == Vector3(-1, -2, -3)

    def test_dot_and_cross(self):
        x = Vector3(1, 0, 0)
        y = Vector3(0, 1, 0)
        assert x.dot(y) == 0.0
        assert x.cross(y) == Vector3(0, 0, 1)

    def test_magnitude_and_normalized(self):
        v = Vector3(3, 4, 0)
        assert v.magnitude == pytest.approx(5.0)
        n = v.normalized()
        assert n.x == pytest.approx(0.6)
        assert n.y == pytest.approx(0.8)

    def test_normalized_zero(self):
        assert Vector3.zero().normalized() == Vector3.zero()

    def test_invalid(self):
        assert not Vector3.invalid().is_valid()
        assert Vector3(1, 2, 3).is_valid()

    def test_from_sequence_requires_three(self):
        with pytest.raises(ValueError):
            Vector3.from_sequence([1, 2])

    def test_array_conversion(self):
        v = Vector3(1.5, -2, 3)
        np.testing.assert_allclose(v.to_array(), [1.5, -2, 3])
        assert Vector3.from_array(v.to_array()) == v
        assert v.to_list() == [1.5, -2.0, 3.0]

    def test_immutable(self):
        v = Vector3(1, 2, 3)
        with pytest.raises(AttributeError):
            v.x = 5


class TestMatrix:
    def test_identity_transform(self):
        v = Vector3(1, 2, 3)
        assert Matrix.identity().transform_direction(v) == v
        assert Matrix.identity().trace == 3.0

    def test_from_rows_sets_bases(self):
        m = Matrix.from_rows([[1, 2, 3], [4, 5, 6], [7, 8, 9]])
        assert m.x_basis == Vector3(1, 2, 3)
        assert m.z_basis == Vector3(7, 8, 9)
        assert m.to_rows() == [[1, 2, 3], [4, 5, 6], [7, 8, 9]]

    def test_from_rows_wrong_shape(self):
        with pytest.raises(ValueError):
            Matrix.from_rows([[1, 0, 0], [0, 1, 0]])

    def test_rotation_about_z(self):
        m = Matrix.rotation(Vector3(0, 0, 1), math.pi / 2)
        v = m.transform_direction(Vector3(1, 0, 0))
        assert v.x == pytest.approx(0.0, abs=1e-9)
        assert v.y == pytest.approx(1.0)

    def test_multiply_composes(self):
        quarter = Matrix.rotation(Vector3(0, 0, 1), math.pi / 2)
        half = quarter @ quarter
        v = half.transform_direction(Vector3(1, 0, 0))
        assert v.x == pytest.approx(-1.0)
        assert v.y == pytest.approx(0.0, abs=1e-9)

    def test_transform_point_adds_origin(self):
        m = Matrix(origin=Vector3(10, 0, 0))
        assert m.transform_point(Vector3(1, 1, 1)) == Vector3(11, 1, 1)

    def test_rigid_inverse(self):
        m = Matrix.from_array(
            Matrix.rotation(Vector3(1, 1, 0), 0.7).to_array(), Vector3(5, -3, 2)
        )
        p = Vector3(1, 2, 3)
        back = m.rigid_inverse().transform_point(m.transform_point(p))
        np.testing.assert_allclose(back.to_array(), p.to_array(), atol=1e-9)
