"""
Management command to force-release a stuck counting session.

Usage:
    python manage.py release_counting_session --list
    python manage.py release_counting_session 42 --actor admin
    python manage.py release_counting_session 42 --dry-run
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from consignman import consignment
from consignman.exceptions import ConsignmentError


class Command(BaseCommand):
    """Force release counting session command."""

    help = 'Libera uma sessão de contagem presa (liberação administrativa)'

    def add_arguments(self, parser):
        parser.add_argument(
            'session_id',
            nargs='?',
            type=int,
            help='ID da sessão de contagem'
        )
        parser.add_argument(
            '--list',
            action='store_true',
            help='Lista as sessões em andamento'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Mostra o que seria liberado sem executar'
        )
        parser.add_argument(
            '--actor',
            help='Usuário (username) registrado como responsável pela liberação'
        )
        parser.add_argument(
            '--reason',
            default='',
            help='Motivo registrado no evento'
        )

    def handle(self, *args, **options):
        sessions = consignment.list_active_sessions()

        if options['list']:
            if not sessions:
                self.stdout.write('Nenhuma sessão de contagem em andamento')
            for active in sessions:
                self.stdout.write(
                    f'#{active.session_id}  {active.client_id}  {active.user_name}  '
                    f'{active.lines} linha(s)  {active.created_at:%d/%m/%y %H:%M}'
                )
            return

        session_id = options['session_id']
        if session_id is None:
            raise CommandError('Informe o ID da sessão ou use --list')

        active = next((s for s in sessions if s.session_id == session_id), None)
        if active is None:
            raise CommandError(f'Sessão {session_id} não encontrada')

        if options['dry_run']:
            self.stdout.write(
                f'Sessão #{session_id} de {active.user_name} ({active.client_id}, '
                f'{active.lines} linha(s)) seria liberada'
            )
            return

        actor = None
        if options['actor']:
            try:
                actor = get_user_model().objects.get_by_natural_key(options['actor'])
            except get_user_model().DoesNotExist:
                raise CommandError(f"Usuário {options['actor']} não encontrado") from None

        try:
            consignment.force_release_session(session_id, actor, reason=options['reason'])
        except ConsignmentError as e:
            raise CommandError(e.message) from e

        self.stdout.write(
            self.style.SUCCESS(f'Sessão #{session_id} de {active.user_name} liberada')
        )
