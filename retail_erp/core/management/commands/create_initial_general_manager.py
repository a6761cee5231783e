from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from retail_erp.branches.models import Branch
from retail_erp.core.exceptions import BootstrapError
from retail_erp.core.services import bootstrap_general_manager


class Command(BaseCommand):
    help = 'Create the first general manager account (refused once one exists)'

    def add_arguments(self, parser):
        parser.add_argument('--email', default=None,
                            help='Login email (defaults to INITIAL_GENERAL_MANAGER_EMAIL)')
        parser.add_argument('--password', required=True)
        parser.add_argument('--full-name', required=True)
        parser.add_argument('--branch', type=int, default=None,
                            help='Branch id; a "Head Office" branch is created when omitted and none exist')

    def handle(self, *args, **options):
        branch_id = options['branch']
        if branch_id is None:
            branch = Branch.objects.order_by('created_at').first()
            if branch is None:
                branch = Branch.objects.create(name='Head Office')
                self.stdout.write(f'Created branch "{branch.name}" (id={branch.id})')
            branch_id = branch.id

        try:
            user = bootstrap_general_manager(
                password=options['password'],
                full_name=options['full_name'],
                branch_id=branch_id,
                email=options['email'] or settings.INITIAL_GENERAL_MANAGER_EMAIL,
            )
        except BootstrapError as e:
            raise CommandError(e.message)

        self.stdout.write(self.style.SUCCESS(f'General manager {user.email} created'))
