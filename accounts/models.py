from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models


class Role:
    SUPER_ADMIN = 'Super Admin'
    ADMIN = 'Admin'
    SALES_REP = 'Sales Rep'
    SECURITY_GUARD = 'Security Guard'
    ORDER_MANAGER = 'Order Manager'
    FINANCE_ADMIN = 'Finance Admin'

    CHOICES = [
        (SUPER_ADMIN, 'Super Admin'),
        (ADMIN, 'Admin'),
        (SALES_REP, 'Sales Rep'),
        (SECURITY_GUARD, 'Security Guard'),
        (ORDER_MANAGER, 'Order Manager'),
        (FINANCE_ADMIN, 'Finance Admin'),
    ]


class UserManager(BaseUserManager):
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('The Email field must be set')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', Role.SUPER_ADMIN)
        extra_fields.setdefault('first_login', False)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    username = None
    email = models.EmailField(unique=True)

    TITLE_CHOICES = [
        ('Mr', 'Mr'),
        ('Mrs', 'Mrs'),
        ('Ms', 'Ms'),
        ('Dr', 'Dr'),
    ]
    title = models.CharField(max_length=5, choices=TITLE_CHOICES, blank=True)
    role = models.CharField(max_length=20, choices=Role.CHOICES, default=Role.SALES_REP)
    employee_id = models.CharField(max_length=50, unique=True, null=True, blank=True)
    phone_number = models.CharField(max_length=20, unique=True, null=True, blank=True)
    device_id = models.CharField(max_length=255, blank=True)
    first_login = models.BooleanField(default=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['first_name', 'last_name']

    objects = UserManager()

    class Meta:
        ordering = ['first_name', 'last_name']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(role__in=[choice[0] for choice in Role.CHOICES]),
                name='users_role_check',
            ),
        ]

    def __str__(self):
        return f"{self.email} ({self.role})"

    @property
    def display_name(self):
        return f"{self.first_name} {self.last_name}".strip() or self.email.split('@')[0]

    def has_role(self, *roles):
        return self.role in roles
