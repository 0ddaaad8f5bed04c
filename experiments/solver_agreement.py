"""
Experiment: Solver Agreement
Checks the root finder against known root sets.

For each degree 1..4, draw random roots, expand them with roots_to_coefficients,
then solve with
  - find_roots      (closed form for real degree <= 3, else Durand-Kerner)
  - durand_kerner   (always iterative)
and record the matched-root error and the residual |P(r)|.

Run:
    python -m experiments.solver_agreement --trials 200

Output:
- results/solver_agreement.csv
- figures/solver/solver_error_hist.png
"""

import argparse
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
from pathlib import Path
from scipy.optimize import linear_sum_assignment

from polyviz.complex_ops import evaluate_polynomial
from polyviz.polynomial import roots_to_coefficients, find_roots, durand_kerner

OUTPUT_DIR = Path("figures/solver")
RESULTS_FILE = Path("results/solver_agreement.csv")

DEGREES = [1, 2, 3, 4]
ROOT_RADIUS = 2.0


def matched_root_error(found, expected):
    """Largest distance after optimally pairing found roots with expected roots."""
    found = np.asarray(found, dtype=np.complex128)
    expected = np.asarray(expected, dtype=np.complex128)
    if len(found) != len(expected):
        return np.inf
    cost = np.abs(found[:, None] - expected[None, :])
    if not np.all(np.isfinite(cost)):
        return np.inf
    rows, cols = linear_sum_assignment(cost)
    return float(cost[rows, cols].max())


def max_residual(coeffs, roots):
    return max(abs(evaluate_polynomial(coeffs, r)) for r in roots)


def random_roots(rng, degree, real):
    re = rng.uniform(-ROOT_RADIUS, ROOT_RADIUS, degree)
    if real:
        return [complex(x) for x in re]
    im = rng.uniform(-ROOT_RADIUS, ROOT_RADIUS, degree)
    return [complex(a, b) for a, b in zip(re, im)]


def run_trials(n_trials, seed=42):
    rng = np.random.default_rng(seed)
    rows = []

    for degree in DEGREES:
        print(f"Running degree {degree} ({n_trials} trials)...")
        for trial in range(n_trials):
            # real roots keep the coefficients real, so the closed form is exercised
            real = trial % 2 == 0
            roots = random_roots(rng, degree, real)
            leading = complex(rng.uniform(0.5, 2.0), 0.0 if real else rng.uniform(-1.0, 1.0))
            coeffs = roots_to_coefficients(roots, leading)

            dispatched = find_roots(coeffs)
            iterative = durand_kerner(coeffs)

            rows.append({
                'degree': degree,
                'trial': trial,
                'real_roots': real,
                'method': dispatched.method,
                'converged': dispatched.converged,
                'dk_converged': iterative.converged,
                'dk_iterations': iterative.iterations,
                'root_error': matched_root_error(dispatched.roots, roots),
                'dk_root_error': matched_root_error(iterative.roots, roots),
                'path_disagreement': matched_root_error(dispatched.roots, iterative.roots),
                'residual': max_residual(coeffs, dispatched.roots),
            })

    return pd.DataFrame(rows)


def plot_errors(df):
    fig, axes = plt.subplots(1, len(DEGREES), figsize=(4 * len(DEGREES), 4), sharey=True)

    for ax, degree in zip(axes, DEGREES):
        sub = df[df['degree'] == degree]
        errs = np.log10(sub['root_error'].clip(lower=1e-17))
        dk_errs = np.log10(sub['dk_root_error'].clip(lower=1e-17))
        ax.hist(errs, bins=30, alpha=0.6, label='find_roots')
        ax.hist(dk_errs, bins=30, alpha=0.6, label='durand_kerner')
        ax.axvline(-6, color='red', ls='--', lw=1)
        ax.set_title(f"degree {degree}")
        ax.set_xlabel("log10 root error")
        ax.grid(True, alpha=0.3)

    axes[0].set_ylabel("count")
    axes[0].legend()
    plt.suptitle("Root error vs known roots", fontsize=14)
    plt.tight_layout()

    plot_path = OUTPUT_DIR / "solver_error_hist.png"
    plt.savefig(plot_path)
    plt.close(fig)
    print(f"Saved plot to {plot_path}")


def summarize(df):
    summary = df.groupby('degree').agg(
        trials=('trial', 'count'),
        converged=('converged', 'mean'),
        max_root_error=('root_error', 'max'),
        max_path_disagreement=('path_disagreement', 'max'),
        mean_dk_iterations=('dk_iterations', 'mean'),
    )
    print("-" * 60)
    print(summary.to_string())
    print("-" * 60)
    return summary


def main():
    parser = argparse.ArgumentParser(description="Root finder agreement check")
    parser.add_argument('--trials', type=int, default=100, help="Trials per degree")
    parser.add_argument('--seed', type=int, default=42, help="Random seed")
    parser.add_argument('--no-plot', action='store_true')
    args = parser.parse_args()

    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    RESULTS_FILE.parent.mkdir(parents=True, exist_ok=True)

    df = run_trials(args.trials, seed=args.seed)
    df.to_csv(RESULTS_FILE, index=False)
    print(f"Saved results to {RESULTS_FILE}")

    summarize(df)
    if not args.no_plot:
        plot_errors(df)

    return 0


if __name__ == "__main__":
    main()
