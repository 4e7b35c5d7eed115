"""
Management command to run the order fulfillment worker.
"""
import time

from django.core.management.base import BaseCommand

from orders.services import build_services


class Command(BaseCommand):
    help = 'Process orders waiting in PROCESSING status'

    def add_arguments(self, parser):
        parser.add_argument(
            '--limit',
            type=int,
            default=100,
            help='Maximum number of orders to process in one run',
        )
        parser.add_argument(
            '--loop',
            action='store_true',
            help='Run in loop (for production)',
        )
        parser.add_argument(
            '--interval',
            type=int,
            default=3,
            help='Interval between loops in seconds',
        )

    def handle(self, *args, **options):
        limit = options['limit']
        loop = options['loop']
        interval = options['interval']

        processor = build_services().processor

        if loop:
            self.stdout.write(f'Starting order processor in loop mode (interval: {interval}s)')
            while True:
                try:
                    self._run_once(processor, limit)
                    time.sleep(interval)
                except KeyboardInterrupt:
                    self.stdout.write(self.style.WARNING('Stopped by user'))
                    break
        else:
            self._run_once(processor, limit)

    def _run_once(self, processor, limit):
        results = processor.process_pending_batch(limit=limit)
        failed = sum(1 for result in results if result.failed)
        self.stdout.write(
            self.style.SUCCESS(f'Processed {len(results)} orders ({failed} failed)')
        )
