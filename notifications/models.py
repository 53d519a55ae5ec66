from django.db import models


class EmailLog(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('sent', 'Sent'),
        ('failed', 'Failed'),
        ('bounced', 'Bounced'),
    ]

    order = models.ForeignKey('orders.Order', on_delete=models.CASCADE, null=True, blank=True, related_name='email_logs')
    on_demand_order = models.ForeignKey('ondemand.OnDemandOrder', on_delete=models.CASCADE, null=True, blank=True, related_name='email_logs')
    recipient_email = models.EmailField()
    recipient_name = models.CharField(max_length=200, blank=True)
    email_type = models.CharField(max_length=50, default='receipt')
    subject = models.CharField(max_length=255)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    error_message = models.TextField(blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    retry_count = models.PositiveIntegerField(default=0)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'email_logs'
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(status__in=['pending', 'sent', 'failed', 'bounced']),
                name='email_logs_status_check',
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'created_at'], name='email_logs_status_idx'),
        ]

    def __str__(self):
        return f"{self.email_type} to {self.recipient_email} ({self.status})"
