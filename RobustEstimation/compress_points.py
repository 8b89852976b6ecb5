import numpy as np


def compress_points(u, mask):
    """
    Keeps the rows of u whose mask entry is set.

    Parameters:
    -----------
    u : numpy.ndarray NxK array, one correspondence per row.
    mask : array of N values convertible to bool.

    Returns:
    --------
    numpy.ndarray a new MxK array, M = number of set entries, relative order preserved.
    """
    u = np.asarray(u)
    mask = np.asarray(mask).reshape(-1).astype(bool)

    if mask.size != u.shape[0]:
        raise ValueError(f"Mask of length {mask.size} does not match {u.shape[0]} points")

    return u[mask].copy()
