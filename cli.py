import os
import sys
import logging
import argparse

# Add the current directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from configuration import (
    DOWNLOAD_URL, UPLOAD_URL, DURATION_SECONDS, DEFAULT_CONCURRENCY,
    METRICS_PORT, VERSION
)

# Quiet HTTP client logging before any request is made
logging.getLogger('urllib3').setLevel(logging.WARNING)
logging.getLogger('requests').setLevel(logging.WARNING)

# Set up logging (only if not already configured)
if not logging.root.handlers:
    logging.basicConfig(level=logging.WARNING, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def _positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def _non_negative_float(value):
    number = float(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {value}")
    return number


class SpeedTestCLI:
    """Command-line interface for the HTTP speed test."""

    def __init__(self, stdout=None):
        self.stdout = stdout or sys.stdout
        self.parser = self._create_parser()

    def _create_parser(self):
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            description='HTTP download/upload speed test',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Measure against the default endpoints with one connection per CPU
  python cli.py

  # 8 connections, 10 seconds per phase, with configuration and details
  python cli.py --concurrent 8 --duration 10 --info

  # Plain output (no progress animation), exporting metrics on :9100
  python cli.py --noanim --metrics-port 9100
            """
        )

        parser.add_argument('-v', '--version', action='store_true',
                            help='Show version')
        parser.add_argument('--info', action='store_true',
                            help='Show detailed information')
        parser.add_argument('--download-url', type=str, default=DOWNLOAD_URL,
                            help=f'Download test URL (default: {DOWNLOAD_URL})')
        parser.add_argument('--upload-url', type=str, default=UPLOAD_URL,
                            help=f'Upload test URL (default: {UPLOAD_URL})')
        parser.add_argument('--concurrent', type=_positive_int, default=DEFAULT_CONCURRENCY,
                            help=f'Number of concurrent connections (default: {DEFAULT_CONCURRENCY})')
        parser.add_argument('--duration', type=_non_negative_float, default=DURATION_SECONDS,
                            help=f'Test duration in seconds per phase (default: {DURATION_SECONDS})')
        parser.add_argument('--noanim', action='store_true',
                            help='Disable progress animation')
        parser.add_argument('--metrics-port', type=int, default=METRICS_PORT,
                            help='Expose Prometheus metrics on this port (0 = disabled)')
        parser.add_argument('--verbose', action='store_true',
                            help='Enable debug logging')

        return parser

    def _write(self, text):
        self.stdout.write(text)
        self.stdout.flush()

    def run_speedtest(self, args):
        """Run both measurement phases and print the results."""
        from algorithms.orchestrator import MeasurementOrchestrator
        from common.byte_counter import DOWNLOAD, UPLOAD
        from observability.report import (
            ProgressPrinter, format_configuration, format_details, format_phase_line
        )

        exporter = None
        if args.metrics_port:
            from observability.prom import SimplePrometheusExporter
            exporter = SimplePrometheusExporter(args.metrics_port)
            exporter.start_server()

        if args.info:
            self._write(format_configuration(
                args.download_url, args.upload_url, args.duration, args.concurrent
            ) + "\n")

        printer = None if args.noanim else ProgressPrinter(self.stdout)
        orchestrator = MeasurementOrchestrator(
            download_url=args.download_url,
            upload_url=args.upload_url,
            concurrency=args.concurrent,
            duration_seconds=args.duration,
            progress_callback=printer,
            exporter=exporter,
        )
        orchestrator.reset()

        results = {}
        for phase, run_phase in ((DOWNLOAD, orchestrator.run_download), (UPLOAD, orchestrator.run_upload)):
            if printer:
                printer.begin(phase)
            results[phase] = run_phase()
            if printer:
                printer.finish(results[phase])
            else:
                self._write(format_phase_line(results[phase]) + "\n")

        if args.info:
            self._write("\n" + format_details(results[DOWNLOAD], results[UPLOAD]))

        return 0

    def run(self, args=None):
        """Run the CLI with the given arguments."""
        if args is None:
            args = sys.argv[1:]

        try:
            parsed_args = self.parser.parse_args(args)
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 1

        if parsed_args.version:
            self._write(f"{VERSION}\n")
            return 0

        if parsed_args.verbose:
            logging.root.setLevel(logging.DEBUG)

        try:
            return self.run_speedtest(parsed_args)
        except KeyboardInterrupt:
            logger.info("Speed test interrupted by user")
            return 1


def main():
    """Main entry point."""
    cli = SpeedTestCLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
