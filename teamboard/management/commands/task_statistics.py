"""Management command to print task statistics per project.

Usage::

    # All projects
    python manage.py task_statistics

    # A single project, computing overdue tasks as of a given day
    python manage.py task_statistics --project 12 --date 2024-05-01
"""
from datetime import date
from django.core.management.base import BaseCommand, CommandError

from teamboard.models import Project
from teamboard.tasks import compute_statistics


class Command(BaseCommand):
    help = 'Print task counts, overdue tasks and completion rate per project'

    def add_arguments(self, parser):
        parser.add_argument(
            '--project',
            type=int,
            help='Only report this project id',
        )
        parser.add_argument(
            '--date',
            type=date.fromisoformat,
            help='Count tasks due before this day as overdue (default: now)',
        )

    def handle(self, *args, **options):
        qs = Project.objects.prefetch_related('tasks').order_by('id')
        if options['project'] is not None:
            qs = qs.filter(pk=options['project'])
            if not qs.exists():
                raise CommandError(f"Project {options['project']} not found")

        for project in qs:
            stats = compute_statistics(project.tasks.all(), options['date'])
            self.stdout.write(
                f'{project.pk} {project.name}: '
                f'{stats.total} tasks, '
                f'{stats.todo} todo, '
                f'{stats.in_progress} in progress, '
                f'{stats.completed} done, '
                f'{stats.overdue} overdue, '
                f'{stats.completion_rate}% complete'
            )
