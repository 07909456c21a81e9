from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PackContent",
            fields=[
                ("pack_id", models.CharField(max_length=128, primary_key=True, serialize=False)),
                ("vendor_id", models.CharField(db_index=True, max_length=128)),
                ("vendor_username", models.CharField(blank=True, default="", max_length=150)),
                ("title", models.CharField(blank=True, default="", max_length=255)),
                ("content", models.JSONField(blank=True, default=list)),
                ("last_updated", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["pack_id"],
            },
        ),
    ]
