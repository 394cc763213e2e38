from django.db import migrations, models
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="DistributionDeclaration",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("case_id", models.CharField(db_index=True, max_length=64)),
                ("distribution_type", models.CharField(
                    choices=[
                        ("secured", "Secured"),
                        ("preferential", "Preferential"),
                        ("secondary_preferential", "Secondary Preferential"),
                        ("unsecured", "Unsecured"),
                        ("members", "Members"),
                    ],
                    max_length=32,
                )),
                ("sum_to_distribute", models.DecimalField(decimal_places=2, max_digits=18)),
                ("sum_to_retain", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("net_distribution", models.DecimalField(decimal_places=2, max_digits=18)),
                ("total_claims", models.DecimalField(decimal_places=2, max_digits=18)),
                ("dividend_rate", models.DecimalField(decimal_places=8, max_digits=24)),
                ("dividend_rate_label", models.CharField(max_length=64)),
                ("per_claim_distributions", models.JSONField(blank=True, default=list)),
                ("ineligible_claims", models.JSONField(blank=True, default=list)),
                ("declared_date", models.DateField()),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
            ],
            options={
                "ordering": ["-declared_date", "-created_at", "-id"],
                "indexes": [models.Index(fields=["case_id", "declared_date"], name="cashiering_case_declared_idx")],
            },
        ),
    ]
