"""Joint state-parameter estimation by state augmentation."""
import numpy as np


def augment_with_parameters(rhs, n_params):
    """
    Wrap rhs(t, x, q) into a model over z = [x, theta].

    The last n_params entries of z are treated as constant parameters: they
    are passed to rhs in place of q and have zero time derivative, so the
    filter estimates them through their correlation with the state.

    Parameters
    ----------
    rhs : callable
        rhs(t, x, theta) -> dx/dt
    n_params : int
        Number of parameters appended to the state

    Returns
    -------
    callable
        augmented(t, z, q) -> dz/dt; q is ignored
    """
    if n_params < 1:
        raise ValueError(f"n_params must be positive, got {n_params}")

    def augmented(t, z, q=None):
        x, theta = split_state(z, n_params)
        theta = theta[0] if n_params == 1 else theta
        dx = np.atleast_1d(rhs(t, x, theta))
        return np.concatenate([dx, np.zeros(n_params)])

    return augmented


def split_state(z, n_params):
    """Split an augmented vector (or [n, ...] array) into state and parameters."""
    z = np.asarray(z)
    return z[:-n_params], z[-n_params:]
