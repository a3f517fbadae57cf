"""
Visualization functions for adaptive EnKF results.
"""
import os

import numpy as np
import matplotlib.pyplot as plt


def plot_aenkf(result, xs=None, state_names=None, save_path=None, title="AEnKF"):
    """
    Plot filtered means with their +/-3 sigma bands.

    Parameters
    ----------
    result : AEnKFResult
        Filter output
    xs : ndarray [T, n_x], optional
        True states
    state_names : list of str, optional
        Labels for the state components
    save_path : str, optional
        Path to save figure
    title : str
        Plot title
    """
    t = result.time
    n_x = result.xfilter.shape[1]
    if xs is not None:
        xs = np.asarray(xs).reshape(len(t), -1)

    # Observed components: data columns map to the rows of M, which the
    # result does not carry, so observations are only drawn when n_y == n_x
    show_data = result.data.shape[1] == n_x

    fig, axes = plt.subplots(n_x, 1, figsize=(12, 3.5*n_x), sharex=True, squeeze=False)
    axes = axes[:, 0]

    for i in range(n_x):
        ax = axes[i]
        name = state_names[i] if state_names else f'State {i+1}'

        if xs is not None:
            ax.plot(t, xs[:, i], 'k-', linewidth=2, label='True State', alpha=0.8)
        if show_data:
            ax.plot(t, result.data[:, i], 'g.', markersize=6, label='Observations', alpha=0.7)
        ax.plot(t, result.xfilter[:, i], 'b--', linewidth=1.5, label='Filter Mean')
        ax.fill_between(t, result.lower[:, i], result.upper[:, i],
                        alpha=0.2, color='blue', label='+/-3sigma')

        ax.set_ylabel(name)
        ax.set_title(f'{title} - {name}')
        ax.legend(loc='upper right', fontsize=8)
        ax.grid(True, alpha=0.3)

    axes[-1].set_xlabel('Time')
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"  Saved: {os.path.basename(save_path)}")
        plt.close()
    else:
        plt.show()


def plot_process_noise(result, save_path=None, title="Adaptive Process Noise"):
    """
    Plot the diagonal of V and its minimum eigenvalue over time.

    Parameters
    ----------
    result : AEnKFResult
        Filter output
    save_path : str, optional
        Path to save figure
    title : str
        Plot title
    """
    t = result.time
    V = result.process_noise
    n_x = V.shape[1]
    min_eig = np.array([np.linalg.eigvalsh(0.5 * (Vk + Vk.T)).min() for Vk in V])

    fig, axes = plt.subplots(1, 2, figsize=(14, 5))

    ax1 = axes[0]
    for i in range(n_x):
        ax1.plot(t, V[:, i, i], linewidth=1.5, label=f'V[{i+1},{i+1}]', alpha=0.8)
    ax1.set_xlabel('Time')
    ax1.set_ylabel('Variance')
    ax1.set_title('Diagonal of V')
    if n_x <= 10:
        ax1.legend(fontsize=8)
    ax1.grid(True, alpha=0.3)

    ax2 = axes[1]
    ax2.plot(t, min_eig, 'r-', linewidth=1.5)
    ax2.axhline(0, color='k', ls='--', lw=1)
    ax2.set_xlabel('Time')
    ax2.set_ylabel('Minimum Eigenvalue')
    ax2.set_title('Definiteness of V (<0 = indefinite)')
    ax2.grid(True, alpha=0.3)

    plt.suptitle(title, fontsize=14, fontweight='bold')
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"  Saved: {os.path.basename(save_path)}")
        plt.close()
    else:
        plt.show()
