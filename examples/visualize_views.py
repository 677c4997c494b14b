"""Visual forensic tool - residual and spectrum views side by side.

Shows the source image, its noise residual and its centered magnitude
spectrum, followed by a row of spectrum renderings at different gamma values.
Periodic synthesis artifacts show up as regular peaks away from the center of
the spectrum; edits show up as regions with a different residual texture.
"""

import argparse
import logging
import sys
from pathlib import Path

import matplotlib.pyplot as plt

from forensic_views import DisplayTargets, ForensicPipeline, ProcessingParameters, load_raw_image

# Configure logging
logging.basicConfig(level=logging.WARNING)

GAMMA_SWEEP = [0.6, 1.0, 1.2, 2.0, 3.0]


def create_views_figure(image_path: Path, output_path: Path = None, spectrum_size: int = 512):
    """
    Create a figure with the source, residual and spectrum views.

    Args:
        image_path: Path to the image file
        output_path: Optional path to save the figure
        spectrum_size: Side of the square spectrum rendering
    """
    print(f"Analyzing image: {image_path}")
    raw = load_raw_image(image_path)
    pipeline = ForensicPipeline()
    targets = DisplayTargets(spectrum_size=spectrum_size)

    views = pipeline.analyze(raw, targets=targets)
    sweep = [
        pipeline.analyze(raw, ProcessingParameters(gamma=gamma), targets).spectrum_view
        for gamma in GAMMA_SWEEP
    ]

    fig = plt.figure(figsize=(20, 12))
    gs = fig.add_gridspec(2, len(GAMMA_SWEEP), hspace=0.3, wspace=0.2, height_ratios=[1, 0.6])

    title = (
        f"Forensic Views: {image_path.name}\n"
        f"{views.conditioned_size[0]}x{views.conditioned_size[1]}px"
        f"{' (resized)' if views.was_resized else ''} | "
        f"FFT {views.padded_size[0]}x{views.padded_size[1]}"
    )
    fig.suptitle(title, fontsize=16, fontweight="bold")

    ax_source = fig.add_subplot(gs[0, 0:2])
    ax_source.imshow(raw.pixels)
    ax_source.set_title("Source", fontsize=12, fontweight="bold")
    ax_source.axis("off")

    ax_residual = fig.add_subplot(gs[0, 2:4])
    ax_residual.imshow(views.residual_view, cmap="gray")
    ax_residual.set_title("Noise Residual (CLAHE)", fontsize=12, fontweight="bold")
    ax_residual.axis("off")

    ax_spectrum = fig.add_subplot(gs[0, 4])
    ax_spectrum.imshow(views.spectrum_view, cmap="gray")
    ax_spectrum.set_title("Centered Spectrum", fontsize=12, fontweight="bold")
    ax_spectrum.axis("off")

    for i, (gamma, spectrum) in enumerate(zip(GAMMA_SWEEP, sweep)):
        ax = fig.add_subplot(gs[1, i])
        ax.imshow(spectrum, cmap="magma")
        ax.set_title(f"gamma = {gamma}", fontsize=10)
        ax.axis("off")

    if output_path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=150, bbox_inches="tight")
        print(f"  Visualization saved to: {output_path}")
    else:
        plt.show()

    plt.close(fig)


def main():
    """Main function for command-line usage."""
    parser = argparse.ArgumentParser(
        description="Visual forensic tool - residual and spectrum views of a single image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Display interactively
  python visualize_views.py path/to/image.jpg

  # Save the figure
  python visualize_views.py path/to/image.jpg -o views.png
        """,
    )
    parser.add_argument("image", type=str, help="Path to the image file to analyze")
    parser.add_argument("-o", "--output", type=str, default=None,
                        help="Output path for the figure (default: display interactively)")
    parser.add_argument("--spectrum-size", type=int, default=512,
                        help="Side of the rendered spectrum in pixels (default: 512)")
    args = parser.parse_args()

    image_path = Path(args.image)
    if not image_path.exists():
        print(f"Error: Image not found: {image_path}")
        sys.exit(1)

    output_path = Path(args.output) if args.output else None
    create_views_figure(image_path, output_path, args.spectrum_size)


if __name__ == "__main__":
    main()
