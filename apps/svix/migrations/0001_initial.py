from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("processors", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="SvixDestination",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("source_id", models.CharField(max_length=255)),
                ("svix_destination_id", models.CharField(max_length=255, unique=True)),
                ("signing_secret", models.TextField()),
                ("created_by", models.CharField(blank=True, default="", max_length=255)),
                ("payment_processor", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="svix_destinations", to="processors.paymentprocessor")),
            ],
            options={
                "db_table": "svix_destination",
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
