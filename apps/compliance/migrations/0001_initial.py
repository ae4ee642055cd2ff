import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='TimeCard',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('work_date', models.DateField(help_text="Calendar date in the carrier's timezone")),
                ('status', models.CharField(choices=[('OPEN', 'On Duty'), ('CLOSED', 'Completed'), ('AUTO_CLOSED', 'Auto-closed')], default='OPEN', max_length=12)),
                ('clock_in_time', models.DateTimeField()),
                ('clock_in_latitude', models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ('clock_in_longitude', models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ('clock_in_accuracy', models.FloatField(blank=True, help_text='GPS accuracy in meters', null=True)),
                ('clock_in_location_label', models.CharField(blank=True, max_length=255)),
                ('clock_out_time', models.DateTimeField(blank=True, null=True)),
                ('clock_out_latitude', models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ('clock_out_longitude', models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ('clock_out_accuracy', models.FloatField(blank=True, null=True)),
                ('clock_out_signature', models.TextField(blank=True, help_text='Opaque signature reference')),
                ('on_duty_hours', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('driving_hours', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('start_odometer', models.PositiveIntegerField(blank=True, null=True)),
                ('end_odometer', models.PositiveIntegerField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('is_historical_entry', models.BooleanField(default=False)),
                ('historical_source', models.CharField(blank=True, choices=[('paper_form', 'Paper Form'), ('spreadsheet', 'Spreadsheet'), ('manual_entry', 'Manual Entry')], max_length=20)),
                ('is_superseded', models.BooleanField(default=False)),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='time_cards', to='core.driver')),
                ('vehicle', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='time_cards', to='core.vehicle')),
                ('supersedes', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='superseded_by', to='compliance.timecard')),
            ],
            options={
                'db_table': 'compliance_time_card',
                'ordering': ['-work_date', '-clock_in_time'],
                'indexes': [
                    models.Index(fields=['driver', 'work_date'], name='time_card_driver_date_idx'),
                    models.Index(fields=['status'], name='time_card_status_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('clock_out_time__isnull', True)), fields=('driver',), name='uniq_open_time_card_per_driver'),
                    models.UniqueConstraint(condition=models.Q(('clock_out_time__isnull', True)), fields=('vehicle',), name='uniq_open_time_card_per_vehicle'),
                    models.UniqueConstraint(condition=models.Q(('is_superseded', False)), fields=('driver', 'work_date'), name='uniq_active_time_card_per_driver_day'),
                    models.CheckConstraint(condition=models.Q(('clock_out_time__isnull', True), ('clock_out_time__gt', models.F('clock_in_time')), _connector='OR'), name='time_card_clock_out_after_clock_in'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DailyTrip',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('trip_date', models.DateField()),
                ('base_latitude', models.DecimalField(decimal_places=7, max_digits=10)),
                ('base_longitude', models.DecimalField(decimal_places=7, max_digits=10)),
                ('furthest_latitude', models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ('furthest_longitude', models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ('max_distance_air_miles', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=8)),
                ('exceeded_radius', models.BooleanField(default=False)),
                ('has_location_data', models.BooleanField(default=False)),
                ('waypoint_count', models.PositiveIntegerField(default=0)),
                ('finalized_at', models.DateTimeField(blank=True, null=True)),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='daily_trips', to='core.driver')),
            ],
            options={
                'db_table': 'compliance_daily_trip',
                'ordering': ['-trip_date'],
                'constraints': [
                    models.UniqueConstraint(fields=('driver', 'trip_date'), name='uniq_daily_trip_per_driver_day'),
                ],
            },
        ),
        migrations.CreateModel(
            name='GpsWaypoint',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('recorded_at', models.DateTimeField()),
                ('latitude', models.DecimalField(decimal_places=7, max_digits=10)),
                ('longitude', models.DecimalField(decimal_places=7, max_digits=10)),
                ('accuracy', models.FloatField(blank=True, null=True)),
                ('distance_from_base', models.DecimalField(decimal_places=2, max_digits=8)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('daily_trip', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='waypoints', to='compliance.dailytrip')),
            ],
            options={
                'db_table': 'compliance_gps_waypoint',
                'ordering': ['daily_trip', 'recorded_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('daily_trip', 'recorded_at'), name='uniq_waypoint_per_timestamp'),
                ],
            },
        ),
        migrations.CreateModel(
            name='MonthlyExemptionStatus',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('window_start', models.DateField()),
                ('window_end', models.DateField(help_text='As-of date the window was evaluated for')),
                ('exceedance_days', models.PositiveIntegerField(default=0)),
                ('exceedance_dates', models.JSONField(blank=True, default=list)),
                ('requires_detailed_logs', models.BooleanField(default=False)),
                ('computed_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='exemption_statuses', to='core.driver')),
            ],
            options={
                'db_table': 'compliance_monthly_exemption_status',
                'ordering': ['-window_end'],
                'constraints': [
                    models.UniqueConstraint(fields=('driver', 'window_start'), name='uniq_exemption_status_window'),
                ],
            },
        ),
        migrations.CreateModel(
            name='WeeklyHOS',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('window_start', models.DateField()),
                ('window_end', models.DateField()),
                ('window_days', models.PositiveSmallIntegerField()),
                ('total_on_duty_hours', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=6)),
                ('hour_limit', models.DecimalField(decimal_places=2, max_digits=5)),
                ('is_violation', models.BooleanField(default=False)),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='weekly_hos', to='core.driver')),
            ],
            options={
                'db_table': 'compliance_weekly_hos',
                'ordering': ['-window_end'],
                'constraints': [
                    models.UniqueConstraint(fields=('driver', 'window_end'), name='uniq_weekly_hos_window'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ComplianceViolation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('violation_date', models.DateField()),
                ('violation_type', models.CharField(choices=[('DRIVING_LIMIT_EXCEEDED', 'Daily driving limit exceeded'), ('ON_DUTY_LIMIT_EXCEEDED', 'Daily on-duty limit exceeded'), ('INSUFFICIENT_OFF_DUTY', 'Insufficient off-duty time'), ('WEEKLY_LIMIT_EXCEEDED', 'Weekly on-duty limit exceeded'), ('EXEMPTION_LOST', 'Radius exemption lost')], max_length=30)),
                ('severity', models.CharField(choices=[('HIGH', 'High'), ('CRITICAL', 'Critical')], max_length=10)),
                ('description', models.TextField()),
                ('measured_value', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('limit_value', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('detected_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('is_resolved', models.BooleanField(default=False)),
                ('resolution_notes', models.TextField(blank=True)),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='compliance_violations', to='core.driver')),
                ('time_card', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='violations', to='compliance.timecard')),
            ],
            options={
                'db_table': 'compliance_violation',
                'ordering': ['-violation_date', '-detected_at'],
                'indexes': [
                    models.Index(fields=['driver', 'violation_date'], name='violation_driver_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TimeCardAuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('action', models.CharField(choices=[('CLOCK_IN', 'Clocked In'), ('CLOCK_OUT', 'Clocked Out'), ('AUTO_CLOSE', 'Auto-closed'), ('CORRECTION', 'Correction Entered'), ('SUPERSEDED', 'Superseded by Correction'), ('HISTORICAL_ENTRY', 'Historical Entry')], max_length=20)),
                ('description', models.TextField()),
                ('actor_name', models.CharField(blank=True, max_length=100)),
                ('reason', models.TextField(blank=True)),
                ('old_values', models.JSONField(blank=True, null=True)),
                ('new_values', models.JSONField(blank=True, null=True)),
                ('time_card', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='audit_entries', to='compliance.timecard')),
            ],
            options={
                'db_table': 'compliance_time_card_audit_log',
                'ordering': ['-created_at'],
            },
        ),
    ]
