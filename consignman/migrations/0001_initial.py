"""
Initial migration for Consignman models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Consignman models: agreements, counting sessions, restock documents, history."""

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ConsignmentAgreement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('client_id', models.CharField(max_length=50, unique=True, verbose_name='Código do Cliente')),
                ('client_name', models.CharField(max_length=200, verbose_name='Cliente')),
                ('erp_warehouse_id', models.CharField(blank=True, default='', max_length=50, verbose_name='Bodega ERP')),
                ('next_document_number', models.PositiveIntegerField(default=1, verbose_name='Próximo Consecutivo')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Observações')),
                ('is_active', models.BooleanField(default=True, verbose_name='Ativo')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Acordo de Consignação',
                'verbose_name_plural': 'Acordos de Consignação',
                'ordering': ['client_name'],
            },
        ),
        migrations.CreateModel(
            name='ProductRule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_id', models.CharField(max_length=64, verbose_name='Produto')),
                ('max_stock', models.DecimalField(decimal_places=3, default=Decimal('0'), help_text='0 = sem reposição automática', max_digits=12, verbose_name='Estoque Máximo')),
                ('price', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=14, verbose_name='Preço')),
                ('client_product_code', models.CharField(blank=True, default='', max_length=64, verbose_name='Código do Cliente')),
                ('agreement', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='rules', to='consignman.consignmentagreement', verbose_name='Acordo')),
            ],
            options={
                'verbose_name': 'Produto em Consignação',
                'verbose_name_plural': 'Produtos em Consignação',
                'ordering': ['product_id'],
            },
        ),
        migrations.AddConstraint(
            model_name='productrule',
            constraint=models.UniqueConstraint(fields=('agreement', 'product_id'), name='unique_rule_per_agreement_product'),
        ),
        migrations.CreateModel(
            name='CountingSession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Iniciada em')),
                ('agreement', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='counting_sessions', to='consignman.consignmentagreement', verbose_name='Acordo')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='consignment_counting_sessions', to=settings.AUTH_USER_MODEL, verbose_name='Usuário')),
            ],
            options={
                'verbose_name': 'Sessão de Contagem',
                'verbose_name_plural': 'Sessões de Contagem',
                'ordering': ['created_at'],
                'permissions': [('force_release_countingsession', 'Pode liberar sessões de contagem de outros usuários')],
            },
        ),
        migrations.AddConstraint(
            model_name='countingsession',
            constraint=models.UniqueConstraint(fields=('agreement',), name='one_counting_session_per_agreement'),
        ),
        migrations.AddConstraint(
            model_name='countingsession',
            constraint=models.UniqueConstraint(fields=('user',), name='one_counting_session_per_user'),
        ),
        migrations.CreateModel(
            name='CountingLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_id', models.CharField(max_length=64, verbose_name='Produto')),
                ('counted_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Quantidade Contada')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('session', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='consignman.countingsession', verbose_name='Sessão')),
            ],
            options={
                'verbose_name': 'Linha de Contagem',
                'verbose_name_plural': 'Linhas de Contagem',
                'ordering': ['product_id'],
            },
        ),
        migrations.AddConstraint(
            model_name='countingline',
            constraint=models.UniqueConstraint(fields=('session', 'product_id'), name='unique_count_per_session_product'),
        ),
        migrations.CreateModel(
            name='RestockDocument',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('consecutive', models.CharField(help_text='{cliente}-{0000}, sequencial por acordo', max_length=80, unique=True, verbose_name='Consecutivo')),
                ('status', models.CharField(choices=[('review', 'Em Revisão'), ('pending', 'Pendente'), ('approved', 'Aprovada'), ('sent', 'Enviada'), ('invoiced', 'Faturada'), ('canceled', 'Cancelada')], db_index=True, default='review', editable=False, max_length=20, verbose_name='Status')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Criada em')),
                ('submitted_at', models.DateTimeField(blank=True, null=True, verbose_name='Enviada em')),
                ('approved_at', models.DateTimeField(blank=True, null=True, verbose_name='Aprovada em')),
                ('erp_movement_id', models.CharField(blank=True, default='', max_length=64, verbose_name='Movimento ERP')),
                ('erp_invoice_number', models.CharField(blank=True, default='', max_length=64, verbose_name='Fatura ERP')),
                ('delivery_date', models.DateField(blank=True, null=True, verbose_name='Data de Entrega')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Observações')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('agreement', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='documents', to='consignman.consignmentagreement', verbose_name='Acordo')),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Aprovada por')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Criada por')),
                ('submitted_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Enviada por')),
            ],
            options={
                'verbose_name': 'Boleta de Reposição',
                'verbose_name_plural': 'Boletas de Reposição',
                'ordering': ['-created_at'],
                'permissions': [
                    ('submit_restockdocument', 'Pode enviar boletas para aprovação'),
                    ('approve_restockdocument', 'Pode aprovar boletas'),
                    ('dispatch_restockdocument', 'Pode marcar boletas como enviadas'),
                    ('invoice_restockdocument', 'Pode faturar boletas'),
                    ('revert_restockdocument', 'Pode reverter o faturamento de boletas'),
                    ('cancel_restockdocument', 'Pode cancelar boletas'),
                ],
                'indexes': [
                    models.Index(fields=['agreement', 'status'], name='consig_doc_agreement_status'),
                    models.Index(fields=['status', 'created_at'], name='consig_doc_status_created'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DocumentLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_id', models.CharField(max_length=64, verbose_name='Produto')),
                ('product_description', models.CharField(blank=True, default='', max_length=255, verbose_name='Descrição')),
                ('client_product_code', models.CharField(blank=True, default='', max_length=64, verbose_name='Código do Cliente')),
                ('counted_quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Inventário Físico')),
                ('max_stock', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Máximo')),
                ('price', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=14, verbose_name='Preço')),
                ('replenish_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='A Repor')),
                ('is_manually_edited', models.BooleanField(default=False, verbose_name='Editada manualmente')),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lines', to='consignman.restockdocument', verbose_name='Boleta')),
            ],
            options={
                'verbose_name': 'Linha da Boleta',
                'verbose_name_plural': 'Linhas da Boleta',
                'ordering': ['product_id'],
            },
        ),
        migrations.AddConstraint(
            model_name='documentline',
            constraint=models.UniqueConstraint(fields=('document', 'product_id'), name='unique_line_per_document_product'),
        ),
        migrations.CreateModel(
            name='HistoryEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Data/Hora')),
                ('status', models.CharField(max_length=20, verbose_name='Status')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Observações')),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='history', to='consignman.restockdocument', verbose_name='Boleta')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL, verbose_name='Usuário')),
            ],
            options={
                'verbose_name': 'Histórico da Boleta',
                'verbose_name_plural': 'Histórico das Boletas',
                'ordering': ['timestamp'],
                'indexes': [
                    models.Index(fields=['document', 'timestamp'], name='consig_history_doc_ts'),
                ],
            },
        ),
    ]
