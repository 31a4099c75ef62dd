import numpy as np
import pytest

from distributions.correlation import (
    SAMPLER_ORDER,
    _ensure_positive_definite,
    analyze_parameter_correlations,
    correlation_matrix,
    correlation_matrix_to_dataframe,
    describe_correlations,
    estimate_correlation,
)


@pytest.mark.parametrize("a,b,rho", [
    ("annual_return_rate", "inflation_rate", -0.3),
    ("annual_return_rate", "monthly_contribution", 0.1),
    ("inflation_rate", "monthly_contribution", 0.6),
    ("annual_return_rate", "contribution_growth_rate", 0.0),
    ("inflation_rate", "inflation_rate", 1.0),
])
def test_estimate_correlation(a, b, rho):
    assert estimate_correlation(a, b) == rho
    assert estimate_correlation(b, a) == rho


def test_nested_dict():
    table = analyze_parameter_correlations()
    assert set(table) == {"annual_return_rate", "inflation_rate", "monthly_contribution"}
    assert table["inflation_rate"]["monthly_contribution"] == 0.6
    assert table["annual_return_rate"]["annual_return_rate"] == 1.0


def test_matrix_is_symmetric_and_usable():
    m = correlation_matrix()
    assert m.shape == (4, 4)
    np.testing.assert_array_equal(m, m.T)
    np.testing.assert_array_equal(np.diag(m), np.ones(4))
    # already positive definite, so the repair is a no-op
    np.testing.assert_allclose(_ensure_positive_definite(m), m, atol=1e-10)
    np.linalg.cholesky(m)


def test_repair_of_inconsistent_matrix():
    bad = np.array([
        [1.0, 0.9, -0.9],
        [0.9, 1.0, 0.9],
        [-0.9, 0.9, 1.0],
    ])
    fixed = _ensure_positive_definite(bad)
    assert np.all(np.linalg.eigvalsh(fixed) > 0)
    np.testing.assert_allclose(np.diag(fixed), np.ones(3))


def test_dataframe_labels():
    df = correlation_matrix_to_dataframe(correlation_matrix(), SAMPLER_ORDER)
    assert list(df.columns) == ["Annual Return", "Inflation", "Monthly Contribution", "Contribution Growth"]
    assert df.loc["Inflation", "Monthly Contribution"] == 0.6


def test_descriptions_strongest_first():
    sentences = describe_correlations()
    assert len(sentences) == 3
    assert sentences[0].startswith("Inflation and Monthly Contribution show a strong positive")
    assert "moderate negative" in sentences[1]
    assert "weak positive" in sentences[2]
