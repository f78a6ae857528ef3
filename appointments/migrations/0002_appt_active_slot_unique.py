from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('appointments', '0001_initial'),
    ]

    operations = [
        migrations.AddConstraint(
            model_name='appointment',
            constraint=models.UniqueConstraint(
                condition=models.Q(status__in=['pending_approval', 'accepted', 'scheduled']),
                fields=('doctor', 'appointment_date', 'appointment_time'),
                name='appt_active_slot_unique',
            ),
        ),
    ]
