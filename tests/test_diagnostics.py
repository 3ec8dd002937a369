"""
Diagnostics Tests - R-hat, ESS and summary printers

Tests:
- Small-sample fallbacks (R-hat = 1.0, ESS = 0.0 below 100 draws)
- Split R-hat against a hand computation
- ESS truncation at the first negative autocorrelation
- Replicate (multi-chain) R-hat
- Zero-variance parameters give NaN
- Printers run on realistic inputs

Run with: pytest tests/test_diagnostics.py -v
"""

import numpy as np
import pytest

from copmcmc.mcmc.diagnostics import (
    Diagnostics,
    compute_split_rhat,
    compute_ess,
    compute_replicate_rhat,
    rates_from_counts,
    print_rhat_summary,
    print_acceptance_summary,
    print_swap_acceptance_summary,
)


def _ar1(n, phi, seed, n_params=4):
    rng = np.random.default_rng(seed)
    x = np.zeros((n, n_params))
    noise = rng.normal(size=(n, n_params))
    for t in range(1, n):
        x[t] = phi * x[t - 1] + noise[t]
    return x


# ============================================================================
# FALLBACKS
# ============================================================================

class TestSmallSampleFallback:
    def test_rhat_is_one(self):
        np.testing.assert_array_equal(compute_split_rhat(np.random.default_rng(0).normal(size=(99, 4))), 1.0)

    def test_ess_is_zero(self):
        np.testing.assert_array_equal(compute_ess(np.random.default_rng(0).normal(size=(99, 4))), 0.0)

    def test_warmup_counts_against_floor(self):
        x = np.random.default_rng(0).normal(size=(150, 4))
        np.testing.assert_array_equal(compute_split_rhat(x, warmup=51), 1.0)
        np.testing.assert_array_equal(compute_ess(x, warmup=51), 0.0)
        assert np.all(compute_ess(x, warmup=50) > 0)

    def test_empty_trace(self):
        np.testing.assert_array_equal(compute_split_rhat(np.zeros((0, 4))), 1.0)
        np.testing.assert_array_equal(compute_ess(np.zeros((0, 4))), 0.0)

    def test_negative_warmup_rejected(self):
        with pytest.raises(ValueError):
            compute_split_rhat(np.zeros((200, 4)), warmup=-1)


# ============================================================================
# SPLIT R-HAT
# ============================================================================

class TestSplitRhat:
    def test_matches_manual(self):
        x = _ar1(301, 0.5, seed=1)[:, 0]
        half = 150
        a, b = x[:half], x[half:]
        W = (a.var(ddof=1) + b.var(ddof=1)) / 2
        m = (a.mean() + b.mean()) / 2
        B = half * ((a.mean() - m) ** 2 + (b.mean() - m) ** 2)
        expected = np.sqrt(((half - 1) / half * W + B / half) / W)

        rhat = compute_split_rhat(_ar1(301, 0.5, seed=1))
        np.testing.assert_allclose(rhat[0], expected, rtol=1e-12)

    def test_stationary_near_one(self):
        rhat = compute_split_rhat(np.random.default_rng(2).normal(size=(4000, 4)))
        assert np.all(np.isfinite(rhat))
        assert np.all(rhat < 1.01)

    def test_trend_detected(self):
        x = np.random.default_rng(3).normal(size=(1000, 4))
        x[:, 1] += np.linspace(0, 5, 1000)
        rhat = compute_split_rhat(x)
        assert rhat[1] > 1.1
        assert rhat[0] < 1.05

    def test_parameter_specific(self):
        rhat = compute_split_rhat(_ar1(2000, 0.9, seed=4))
        assert len(np.unique(rhat)) == 4

    def test_zero_variance_is_nan(self):
        x = np.random.default_rng(5).normal(size=(500, 4))
        x[:, 2] = 0.7
        rhat = compute_split_rhat(x)
        assert np.isnan(rhat[2])
        assert np.all(np.isfinite(rhat[[0, 1, 3]]))


# ============================================================================
# ESS
# ============================================================================

class TestEss:
    def test_white_noise_close_to_n(self):
        ess = compute_ess(np.random.default_rng(6).normal(size=(5000, 4)))
        assert np.all(ess > 4000)
        assert np.all(ess < 6500)

    def test_autocorrelated_much_smaller(self):
        # AR(1) with phi = 0.9: ESS / n is about (1 - phi) / (1 + phi) = 0.053
        ess = compute_ess(_ar1(20000, 0.9, seed=7))
        assert np.all(ess > 400)
        assert np.all(ess < 2500)

    def test_truncation_rule(self):
        x = _ar1(400, 0.3, seed=8)[:, 0]
        n = len(x)
        centered = x - x.mean()
        var = x.var(ddof=1)
        acf_sum = 0.0
        for lag in range(1, min(100, n // 2)):
            acf = np.sum(centered[lag:] * centered[:-lag]) / ((n - lag) * var)
            acf_sum += acf
            if acf < 0:
                break
        expected = n / (1 + 2 * acf_sum)

        ess = compute_ess(_ar1(400, 0.3, seed=8))
        np.testing.assert_allclose(ess[0], expected, rtol=1e-10)

    def test_zero_variance_is_nan(self):
        x = np.random.default_rng(9).normal(size=(500, 4))
        x[:, 0] = 1.0
        ess = compute_ess(x)
        assert np.isnan(ess[0])
        assert np.all(np.isfinite(ess[1:]))


# ============================================================================
# REPLICATE R-HAT
# ============================================================================

class TestReplicateRhat:
    def test_matches_manual(self):
        rng = np.random.default_rng(10)
        history = rng.normal(size=(500, 3, 4))
        history[:, 1, :] += 0.2
        n = 500
        means = history.mean(axis=0)
        B = n * means.var(axis=0, ddof=1)
        W = history.var(axis=0, ddof=1).mean(axis=0)
        expected = np.sqrt(((n - 1) * W + B) / n / W)
        np.testing.assert_allclose(compute_replicate_rhat(history), expected, rtol=1e-12)

    def test_separated_replicates_flagged(self):
        rng = np.random.default_rng(11)
        history = rng.normal(size=(500, 4, 4))
        history[:, 0, :] += 3.0
        assert np.all(compute_replicate_rhat(history) > 1.1)

    def test_single_replicate_falls_back_to_split(self):
        x = _ar1(600, 0.5, seed=12)
        np.testing.assert_allclose(compute_replicate_rhat(x[:, None, :]), compute_split_rhat(x))

    def test_shape_checked(self):
        with pytest.raises(ValueError):
            compute_replicate_rhat(np.zeros((10, 4)))


# ============================================================================
# RECORDS AND PRINTERS
# ============================================================================

class TestRatesAndRecords:
    def test_rates_from_counts(self):
        np.testing.assert_allclose(rates_from_counts([1, 0, 3], [2, 0, 4]), [0.5, 0.0, 0.75])

    def test_diagnostics_converged_and_dict(self):
        d = Diagnostics(
            rhat=np.array([1.0, 1.01, 1.02, 1.0]),
            ess=np.array([500.0, 800.0, 450.0, 900.0]),
            swap_rate=0.3,
            swap_rates=np.array([0.3, 0.3]),
            acceptance_rates=np.array([0.25, 0.3, 0.35]),
            n_samples=5000,
            warmup=5000,
        )
        assert d.converged()
        assert not d.converged(min_ess=600)
        out = d.to_dict()
        assert out['rhat']['floor'] == 1.0
        assert out['ess']['slope'] == 900.0
        assert out['swap_rates'] == [0.3, 0.3]


class TestPrinters:
    def test_print_rhat_summary(self, capsys):
        print_rhat_summary(np.array([1.0, 1.2, 1.01, np.nan]), np.array([500, 20, 800, 0]))
        out = capsys.readouterr().out
        assert "ec50" in out
        assert "Not Converged" in out
        assert "NaN/Inf" in out

    def test_print_acceptance_summary(self, capsys):
        print_acceptance_summary(np.array([1.0, 2.0]), np.array([0.25, 0.05]))
        out = capsys.readouterr().out
        assert "2 chains" in out
        assert "WARNING" in out

    def test_print_swap_summary(self, capsys):
        print_swap_acceptance_summary(np.array([1.0, 2.0, 4.0]), np.array([3, 0]), np.array([10, 0]))
        out = capsys.readouterr().out
        assert "30.0%" in out
        assert "Overall swap rate" in out

    def test_print_swap_summary_single_chain_silent(self, capsys):
        print_swap_acceptance_summary(np.array([1.0]), np.array([]), np.array([]))
        assert capsys.readouterr().out == ""


# ============================================================================
# ISSUE REPORT
# ============================================================================

class TestIssueReport:
    def _diagnostics(self, samples, **overrides):
        fields = dict(
            rhat=compute_split_rhat(samples),
            ess=compute_ess(samples),
            swap_rate=0.3,
            swap_rates=np.array([0.3]),
            acceptance_rates=np.array([0.25, 0.3]),
            n_samples=samples.shape[0],
            warmup=0,
        )
        fields.update(overrides)
        return Diagnostics(**fields)

    def test_clean_trace(self):
        from copmcmc.error_handling import diagnose_sampler_issues

        samples = np.random.default_rng(20).normal(size=(2000, 4))
        report = diagnose_sampler_issues(samples, self._diagnostics(samples))
        assert report['issues'] == []
        assert report['warnings'] == []

    def test_stuck_and_unstable(self):
        from copmcmc.error_handling import diagnose_sampler_issues

        samples = np.random.default_rng(21).normal(size=(500, 4))
        samples[:, 3] = 2.0
        report = diagnose_sampler_issues(samples, self._diagnostics(samples))
        assert any("slope appears stuck" in w for w in report['warnings'])
        assert any("slope R-hat is not finite" in w for w in report['warnings'])

        samples[10, 0] = np.nan
        report = diagnose_sampler_issues(samples, self._diagnostics(samples))
        assert len(report['issues']) == 1

    def test_swap_and_acceptance_warnings(self):
        from copmcmc.error_handling import diagnose_sampler_issues

        samples = np.random.default_rng(22).normal(size=(2000, 4))
        report = diagnose_sampler_issues(
            samples,
            self._diagnostics(samples, swap_rate=0.01, acceptance_rates=np.array([0.02, 0.3])),
        )
        assert any("Swap rate" in w for w in report['warnings'])
        assert any("Acceptance rates" in w for w in report['warnings'])

    def test_print_diagnostics_logs(self, caplog):
        from copmcmc.error_handling import print_diagnostics

        with caplog.at_level("INFO", logger="copmcmc"):
            print_diagnostics({'issues': [], 'warnings': ["ec50 ESS 12 <= 400"], 'info': ["x"]})
        assert "ec50 ESS 12" in caplog.text
        assert "No issues detected" not in caplog.text
