"""Basic usage example for the forensic views pipeline."""

import argparse
import logging
import sys
from pathlib import Path

from PIL import Image

from forensic_views import (
    ComputeEngine,
    DisplayTargets,
    ForensicPipeline,
    PassStatus,
    ProcessingCoordinator,
    ProcessingParameters,
    load_raw_image,
)

# Configure logging
logging.basicConfig(level=logging.INFO)


def analyze_single_image(image_path: Path, output_dir: Path, params: ProcessingParameters):
    """Write the residual and spectrum views of one image as PNG files."""
    pipeline = ForensicPipeline()
    views = pipeline.analyze_path(image_path, parameters=params, targets=DisplayTargets(spectrum_size=512))

    output_dir.mkdir(parents=True, exist_ok=True)
    residual_path = output_dir / f"{image_path.stem}_residual.png"
    spectrum_path = output_dir / f"{image_path.stem}_spectrum.png"
    Image.fromarray(views.residual_view).save(residual_path)
    Image.fromarray(views.spectrum_view).save(spectrum_path)

    print(f"\nAnalysis Results for: {image_path}")
    print(f"Source size:      {views.source_size[0]}x{views.source_size[1]}")
    print(f"Conditioned size: {views.conditioned_size[0]}x{views.conditioned_size[1]}"
          f"{' [resized]' if views.was_resized else ''}")
    print(f"FFT size:         {views.padded_size[0]}x{views.padded_size[1]}")
    print(f"Residual view:    {residual_path}")
    print(f"Spectrum view:    {spectrum_path}")


def interactive_session(image_path: Path):
    """Drive the coordinator the way a UI would: image load, then slider moves."""
    engine = ComputeEngine()

    def report(status: PassStatus):
        print(
            f"  pass finished: {status.kind.value} in {status.elapsed_ms:.1f}ms "
            f"(gamma={status.parameters.gamma}, gain={status.parameters.gain})"
        )

    coordinator = ProcessingCoordinator(engine=engine, on_status=report)
    coordinator.set_targets(residual_size=(640, 480), spectrum_size=512)

    engine.initialize()
    coordinator.set_image(load_raw_image(image_path))

    # A burst of slider movements collapses into one pass with the last value
    for gamma in (1.4, 1.6, 1.8, 2.0):
        coordinator.request(gamma=gamma)
    coordinator.run_until_idle()

    coordinator.request(gain=1.5, offset=-10.0)
    coordinator.run_until_idle()
    print(f"Passes run: {coordinator.passes_run}")


def main():
    parser = argparse.ArgumentParser(description="Render forensic residual and spectrum views")
    parser.add_argument("image", type=str, help="Path to the image file to analyze")
    parser.add_argument("-o", "--output-dir", type=str, default="forensic_output",
                        help="Directory for the PNG views (default: forensic_output)")
    parser.add_argument("--gamma", type=float, default=1.2, help="Spectrum gamma (default: 1.2)")
    parser.add_argument("--gain", type=float, default=1.0, help="Spectrum gain (default: 1.0)")
    parser.add_argument("--offset", type=float, default=0.0, help="Spectrum offset (default: 0)")
    parser.add_argument("--interactive", action="store_true",
                        help="Also simulate an interactive session through the coordinator")
    args = parser.parse_args()

    image_path = Path(args.image)
    if not image_path.exists():
        print(f"Image not found: {image_path}")
        sys.exit(1)

    params = ProcessingParameters(gamma=args.gamma, gain=args.gain, offset=args.offset)
    analyze_single_image(image_path, Path(args.output_dir), params)

    if args.interactive:
        print("\n" + "=" * 60)
        interactive_session(image_path)


if __name__ == "__main__":
    print("=" * 60)
    print("Forensic Views - Basic Usage Example")
    print("=" * 60)
    main()
