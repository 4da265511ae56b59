from decimal import Decimal
import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='BankAccount',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('nickname', models.CharField(blank=True, max_length=100)),
                ('institution', models.CharField(blank=True, max_length=100)),
                ('account_type', models.CharField(choices=[('checking', 'Checking'), ('savings', 'Savings'), ('transaction', 'Transaction'), ('cash', 'Cash'), ('credit_card', 'Credit card'), ('debt', 'Debt')], default='checking', max_length=20)),
                ('current_balance', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('apr', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Annual percentage rate, e.g. 19.95', max_digits=5)),
                ('minimum_payment', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bank_accounts', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'accounts',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['user', 'account_type'], name='accounts_user_type_idx')],
            },
        ),
        migrations.CreateModel(
            name='IncomeSource',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Typical amount per pay', max_digits=12)),
                ('pay_cycle', models.CharField(choices=[('weekly', 'Weekly'), ('fortnightly', 'Fortnightly'), ('monthly', 'Monthly')], default='fortnightly', max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('next_pay_date', models.DateField(blank=True, null=True)),
                ('last_reconciled_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='income_sources', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'income_sources',
                'ordering': ['created_at'],
                'indexes': [models.Index(fields=['user', 'is_active'], name='income_user_active_idx')],
            },
        ),
        migrations.CreateModel(
            name='Envelope',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('priority', models.CharField(choices=[('essential', 'Essential'), ('important', 'Important'), ('discretionary', 'Discretionary')], default='important', max_length=20)),
                ('target_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('current_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('pay_cycle_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Planned commitment per pay', max_digits=12)),
                ('is_surplus_envelope', models.BooleanField(default=False)),
                ('is_cc_holding', models.BooleanField(default=False)),
                ('is_suggested', models.BooleanField(default=False)),
                ('suggestion_type', models.CharField(blank=True, max_length=50)),
                ('is_dismissed', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='envelopes', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'envelopes',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['user', 'is_dismissed'], name='envelopes_user_dismissed_idx')],
            },
        ),
        migrations.CreateModel(
            name='EnvelopeIncomeAllocation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('priority', models.PositiveIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('envelope', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='income_allocations', to='budget.envelope')),
                ('income_source', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='allocations', to='budget.incomesource')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='income_allocations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'envelope_income_allocations',
                'ordering': ['priority', 'created_at'],
                'constraints': [models.UniqueConstraint(fields=('income_source', 'envelope'), name='unique_income_source_envelope')],
            },
        ),
        migrations.CreateModel(
            name='Transaction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('occurred_at', models.DateField()),
                ('merchant_name', models.CharField(blank=True, max_length=200)),
                ('description', models.TextField(blank=True)),
                ('transaction_type', models.CharField(choices=[('income', 'Income'), ('expense', 'Expense'), ('transfer', 'Transfer')], default='expense', max_length=20)),
                ('transfer_pending', models.BooleanField(default=False)),
                ('pre_transfer_type', models.CharField(blank=True, choices=[('income', 'Income'), ('expense', 'Expense')], max_length=20)),
                ('type_needs_review', models.BooleanField(default=False)),
                ('is_reconciled', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='transactions', to='budget.bankaccount')),
                ('envelope', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='transactions', to='budget.envelope')),
                ('income_source', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='transactions', to='budget.incomesource')),
                ('linked_transaction', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='budget.transaction')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='transactions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'transactions',
                'ordering': ['-occurred_at', '-created_at'],
                'indexes': [
                    models.Index(fields=['user', 'occurred_at'], name='tx_user_occurred_idx'),
                    models.Index(fields=['user', 'transfer_pending'], name='tx_user_pending_idx'),
                    models.Index(fields=['account', 'occurred_at'], name='tx_account_occurred_idx'),
                ],
                'constraints': [models.CheckConstraint(condition=models.Q(('transfer_pending', False), ('envelope__isnull', True), _connector='OR'), name='pending_transfer_has_no_envelope')],
            },
        ),
        migrations.CreateModel(
            name='AllocationPlan',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('regular_total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('surplus_total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('envelope_count', models.PositiveIntegerField(default=0)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved')], default='pending', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('applied_at', models.DateTimeField(blank=True, null=True)),
                ('income_source', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='allocation_plans', to='budget.incomesource')),
                ('source_transaction', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='allocation_plan', to='budget.transaction')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='allocation_plans', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'allocation_plans',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='AllocationPlanItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('priority', models.PositiveIntegerField(default=1)),
                ('envelope', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='plan_items', to='budget.envelope')),
                ('plan', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='budget.allocationplan')),
            ],
            options={
                'db_table': 'allocation_plan_items',
                'ordering': ['priority'],
            },
        ),
        migrations.CreateModel(
            name='TransactionSplit',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('is_surplus', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('envelope', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='splits', to='budget.envelope')),
                ('transaction', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='splits', to='budget.transaction')),
            ],
            options={
                'db_table': 'transaction_splits',
                'ordering': ['is_surplus', 'created_at'],
            },
        ),
    ]
