# core/models.py
from django.conf import settings
from django.db import models


class SystemSetting(models.Model):
    """Runtime-editable settings as key-value pairs"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'System Setting'
        verbose_name_plural = 'System Settings'
        ordering = ['key']

    def __str__(self):
        return f"{self.key}: {self.value}"

    @classmethod
    def get_setting(cls, key, default=None):
        """Get a setting value by key"""
        try:
            setting = cls.objects.get(key=key, is_active=True)
            return setting.value
        except cls.DoesNotExist:
            return default

    @classmethod
    def set_setting(cls, key, value, description=''):
        """Set or update a setting"""
        setting, created = cls.objects.get_or_create(
            key=key,
            defaults={
                'value': str(value),
                'description': description,
                'is_active': True
            }
        )
        if not created:
            setting.value = str(value)
            if description:
                setting.description = description
            setting.is_active = True
            setting.save()
        return setting

    @classmethod
    def clinic_header(cls):
        """Clinic identity used on exported documents"""
        return {
            'name': cls.get_setting('clinic_name', settings.CLINIC_NAME),
            'address': cls.get_setting('clinic_address', ''),
            'phone': cls.get_setting('clinic_phone', ''),
            'email': cls.get_setting('clinic_email', ''),
        }


class AuditLog(models.Model):
    """Business audit trail, written in the same transaction as the change"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('status_change', 'Status Change'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)

    # Model info
    model_name = models.CharField(max_length=50)
    object_id = models.PositiveIntegerField(null=True, blank=True)
    object_repr = models.CharField(max_length=200, blank=True)

    # Change details
    changes = models.JSONField(default=dict, blank=True)
    description = models.TextField(blank=True, help_text="Human-readable description of the change")

    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['model_name', 'timestamp'], name='audit_model_ts_idx'),
            models.Index(fields=['action', 'timestamp'], name='audit_action_ts_idx'),
        ]
        verbose_name = 'Audit Log'
        verbose_name_plural = 'Audit Logs'

    def __str__(self):
        user_str = self.user.get_username() if self.user else 'System'
        return f"{user_str} {self.action} {self.model_name} at {self.timestamp}"

    @classmethod
    def log_action(cls, action, model_instance, changes=None, description='', user=None, using=None):
        """
        Log an action with optional change details

        Args:
            action: Action type (create, update, delete, status_change)
            model_instance: The model instance that was changed
            changes: Dict of field changes {field_name: {'old': ..., 'new': ...}}
            description: Human-readable description
            user: User who performed the action (None for system actions)
            using: Database alias, defaults to the instance's own
        """
        log_entry = cls(
            user=user,
            action=action,
            model_name=model_instance._meta.model_name,
            object_id=model_instance.pk,
            object_repr=str(model_instance)[:200],
            changes=changes or {},
            description=description
        )
        log_entry.save(using=using or model_instance._state.db)
        return log_entry
