import matplotlib.pyplot as plt
import numpy as np

from EpipolarKernels.epilines import compute_correspond_epilines


def _plot_lines(ax, lines, img_width):
    for a, b, c in lines:
        # Compute endpoints of the line in the image
        if abs(b) > 1e-8:
            x0, x1 = 0, img_width
            y0 = (-c - a * x0) / b
            y1 = (-c - a * x1) / b
            ax.plot([x0, x1], [y0, y1], 'g-')
        else:
            # Vertical line
            ax.axvline(-c / a, color='g')


def draw_epipolar_lines(F, pts1, pts2, inliers=None, num_lines=10, image_size=(640, 480), rng=None):
    """
    Draw epipolar lines of a fundamental matrix over both images

    Parameters:
    -----------
    F : numpy.ndarray (3x3)
        Fundamental matrix, x2' F x1 = 0
    pts1, pts2 : numpy.ndarray (Nx2)
        Point correspondences
    inliers : numpy.ndarray (N,) of bool, optional
        Only inliers are drawn when given
    num_lines : int, optional (default=10)
        Number of epipolar lines to draw in each image
    image_size : (int, int), optional
        (width, height) of the drawing area
    rng : numpy.random.Generator, optional
        Used to pick the drawn correspondences

    Returns:
    --------
    fig : matplotlib.figure.Figure
    """
    if rng is None:
        rng = np.random.default_rng()

    pts1 = np.asarray(pts1, dtype=np.float64)
    pts2 = np.asarray(pts2, dtype=np.float64)

    if inliers is not None:
        pts1 = pts1[inliers]
        pts2 = pts2[inliers]

    if pts1.shape[0] > num_lines:
        indices = rng.choice(pts1.shape[0], num_lines, replace=False)
        pts1 = pts1[indices]
        pts2 = pts2[indices]

    img_width, img_height = image_size
    fig, axes = plt.subplots(1, 2, figsize=(16, 8))

    # Plot points in both images
    axes[0].scatter(pts1[:, 0], pts1[:, 1], c='b', marker='o')
    axes[1].scatter(pts2[:, 0], pts2[:, 1], c='b', marker='o')

    # Lines in the second image come from points of the first one and vice versa
    _plot_lines(axes[1], compute_correspond_epilines(pts1, 1, F), img_width)
    _plot_lines(axes[0], compute_correspond_epilines(pts2, 2, F), img_width)

    axes[0].set_title('Image 1 with Epipolar Lines')
    axes[1].set_title('Image 2 with Epipolar Lines')

    for ax in axes:
        ax.set_xlim(0, img_width)
        ax.set_ylim(img_height, 0)  # Invert y-axis for image coordinates

    fig.tight_layout()
    return fig
