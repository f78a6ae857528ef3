from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('doctors', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('appointment_date', models.DateField(db_index=True)),
                ('appointment_time', models.TimeField()),
                ('reason', models.CharField(choices=[('Checkup', 'Checkup'), ('Consultation', 'Consultation'), ('Follow-up', 'Follow-up'), ('Treatment', 'Treatment'), ('Other', 'Other')], max_length=30)),
                ('status', models.CharField(choices=[('pending_approval', 'Pending Approval'), ('accepted', 'Accepted'), ('scheduled', 'Scheduled'), ('completed', 'Completed'), ('cancelled', 'Cancelled'), ('denied', 'Denied')], db_index=True, default='pending_approval', max_length=20)),
                ('version', models.PositiveIntegerField(default=1)),
                ('amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=8)),
                ('payment_method', models.CharField(choices=[('CASH', 'Cash'), ('VISA', 'Visa')], default='CASH', max_length=10)),
                ('payment_status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid'), ('failed', 'Failed')], default='pending', max_length=10)),
                ('cancelled_by', models.CharField(blank=True, max_length=20, null=True)),
                ('cancellation_message', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='doctor_appointments', to='doctors.doctorprofile')),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='patient_appointments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'appointment',
                'ordering': ['-appointment_date', '-appointment_time'],
                'indexes': [
                    models.Index(fields=['appointment_date', 'doctor'], name='appt_date_doctor_idx'),
                    models.Index(fields=['patient', 'status'], name='appt_patient_status_idx'),
                ],
            },
        ),
    ]
