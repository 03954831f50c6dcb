from django.db import models


class CoreSetting(models.Model):
    category = models.CharField(max_length=50, default="general")
    code = models.CharField(max_length=100)
    int_value = models.IntegerField(null=True, blank=True)
    char_value = models.CharField(max_length=255, null=True, blank=True)
    notes = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "core_settings"
        constraints = [
            models.UniqueConstraint(fields=["category", "code"], name="uniq_core_setting"),
        ]

    def __str__(self):
        return f"{self.category}/{self.code}"
