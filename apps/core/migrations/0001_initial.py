from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Driver',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(max_length=100)),
                ('license_number', models.CharField(max_length=50, unique=True)),
                ('license_state', models.CharField(blank=True, max_length=2)),
                ('phone', models.CharField(blank=True, max_length=20)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('employee_id', models.CharField(blank=True, help_text='Carrier-assigned employee identifier', max_length=50)),
                ('is_active', models.BooleanField(default=True)),
            ],
            options={
                'db_table': 'core_driver',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['is_active'], name='core_driver_active_idx')],
            },
        ),
        migrations.CreateModel(
            name='Vehicle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('vehicle_number', models.CharField(help_text='Fleet unit number painted on the vehicle', max_length=20, unique=True)),
                ('vin', models.CharField(blank=True, max_length=17)),
                ('license_plate', models.CharField(max_length=20)),
                ('make', models.CharField(blank=True, max_length=50)),
                ('model', models.CharField(blank=True, max_length=50)),
                ('year', models.IntegerField(blank=True, null=True)),
                ('vehicle_type', models.CharField(choices=[('SEDAN', 'Sedan'), ('SUV', 'SUV'), ('SPRINTER', 'Sprinter Van'), ('MINICOACH', 'Mini Coach'), ('COACH', 'Motor Coach')], default='SPRINTER', max_length=20)),
                ('capacity', models.PositiveIntegerField(default=14, help_text='Passenger seats')),
                ('is_active', models.BooleanField(default=True)),
            ],
            options={
                'db_table': 'core_vehicle',
                'ordering': ['vehicle_number'],
                'indexes': [models.Index(fields=['is_active'], name='core_vehicle_active_idx')],
            },
        ),
    ]
