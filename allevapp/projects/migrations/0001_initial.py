import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('farms', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Project',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True, null=True)),
                ('project_number', models.CharField(max_length=50, unique=True)),
                ('company', models.CharField(max_length=200)),
                ('sequential_number', models.PositiveIntegerField()),
                ('status', models.CharField(choices=[('open', 'Aperto'), ('defined', 'Definito'), ('in_progress', 'In Corso'), ('completed', 'Completato'), ('discarded', 'Scartato')], default='open', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='projects_created', to=settings.AUTH_USER_MODEL)),
                ('farm', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='projects', to='farms.farm')),
            ],
            options={
                'db_table': 'projects',
                'ordering': ['-created_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('company', 'sequential_number'), name='uniq_project_company_sequence'),
                ],
            },
        ),
    ]
