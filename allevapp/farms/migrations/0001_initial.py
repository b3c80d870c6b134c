import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Farm',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('address', models.TextField(blank=True, null=True)),
                ('company', models.CharField(choices=[('Zoogamma Spa', 'Zoogamma Spa'), ('So. Agr. Zooagri Srl', 'So. Agr. Zooagri Srl'), ('Soc. Agr. Zooallevamenti Srl', 'Soc. Agr. Zooallevamenti Srl')], default='Zoogamma Spa', max_length=200)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='farms_created', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'farms',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Barn',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('farm', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='barns', to='farms.farm')),
            ],
            options={
                'db_table': 'barns',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='FarmTechnician',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('farm', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='technician_assignments', to='farms.farm')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='farm_assignments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'farm_technicians',
                'unique_together': {('farm', 'user')},
            },
        ),
        migrations.AddField(
            model_name='farm',
            name='technicians',
            field=models.ManyToManyField(blank=True, related_name='assigned_farms', through='farms.FarmTechnician', to=settings.AUTH_USER_MODEL),
        ),
        migrations.CreateModel(
            name='Equipment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('last_maintenance', models.DateField(blank=True, null=True)),
                ('next_maintenance_due', models.DateField(blank=True, null=True)),
                ('maintenance_interval_days', models.PositiveIntegerField(default=365)),
                ('name', models.CharField(max_length=200)),
                ('model', models.CharField(blank=True, max_length=200, null=True)),
                ('serial_number', models.CharField(blank=True, max_length=200, null=True)),
                ('status', models.CharField(choices=[('working', 'Working'), ('not_working', 'Not Working'), ('regenerated', 'Regenerated'), ('repaired', 'Repaired')], default='working', max_length=20)),
                ('description', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('barn', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='equipment', to='farms.barn')),
                ('farm', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='equipment', to='farms.farm')),
            ],
            options={
                'db_table': 'equipment',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['next_maintenance_due'], name='idx_equipment_next_due')],
            },
        ),
        migrations.CreateModel(
            name='Facility',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('last_maintenance', models.DateField(blank=True, null=True)),
                ('next_maintenance_due', models.DateField(blank=True, null=True)),
                ('maintenance_interval_days', models.PositiveIntegerField(default=365)),
                ('name', models.CharField(max_length=200)),
                ('type', models.CharField(choices=[('electrical', 'Elettrico'), ('plumbing', 'Idraulico'), ('ventilation', 'Ventilazione'), ('heating', 'Riscaldamento'), ('cooling', 'Raffreddamento'), ('lighting', 'Illuminazione'), ('security', 'Sicurezza'), ('other', 'Altro')], default='other', max_length=20)),
                ('description', models.TextField(blank=True, null=True)),
                ('status', models.CharField(choices=[('working', 'Working'), ('not_working', 'Not Working'), ('maintenance_required', 'Maintenance Required'), ('under_maintenance', 'Under Maintenance')], default='working', max_length=30)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('farm', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='facilities', to='farms.farm')),
            ],
            options={
                'db_table': 'facilities',
                'ordering': ['name'],
                'verbose_name_plural': 'facilities',
                'indexes': [models.Index(fields=['next_maintenance_due'], name='idx_facility_next_due')],
            },
        ),
    ]
