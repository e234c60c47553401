from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Organization',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='Membership',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('owner', 'Owner'), ('admin', 'Admin'), ('member', 'Member')], default='member', max_length=10)),
                ('joined_at', models.DateTimeField(auto_now_add=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to='herd.organization')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'unique_together': {('organization', 'user')},
            },
        ),
        migrations.CreateModel(
            name='FarmSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('farm_name', models.CharField(default='My Farm', max_length=200)),
                ('timezone', models.CharField(default='America/Los_Angeles', max_length=64)),
                ('weight_unit', models.CharField(choices=[('kg', 'Kilograms'), ('lbs', 'Pounds')], default='kg', max_length=4)),
                ('measurement_unit', models.CharField(choices=[('feet', 'Feet'), ('meters', 'Meters')], default='feet', max_length=6)),
                ('prop12_compliance_enabled', models.BooleanField(default=False, help_text='Track California Prop 12 space requirements')),
                ('email_notifications_enabled', models.BooleanField(default=True)),
                ('task_reminders_enabled', models.BooleanField(default=True)),
                ('ear_notch_current_litter', models.PositiveIntegerField(default=1, help_text='Right-ear notch given to the next litter')),
                ('ear_notch_last_reset_date', models.DateField(blank=True, null=True)),
                ('organization', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='farm_settings', to='herd.organization')),
            ],
            options={
                'verbose_name_plural': 'Farm settings',
            },
        ),
        migrations.CreateModel(
            name='HousingUnit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('unit_type', models.CharField(choices=[('breeding', 'Breeding'), ('gestation', 'Gestation'), ('farrowing', 'Farrowing'), ('hospital', 'Hospital'), ('quarantine', 'Quarantine'), ('other', 'Other')], default='other', max_length=12)),
                ('capacity', models.PositiveIntegerField(default=1)),
                ('square_footage', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('notes', models.TextField(blank=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='housing_units', to='herd.organization')),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Boar',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ear_tag', models.CharField(max_length=50)),
                ('name', models.CharField(blank=True, max_length=100)),
                ('breed', models.CharField(max_length=100)),
                ('birth_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('culled', 'Culled'), ('sold', 'Sold')], default='active', max_length=10)),
                ('boar_type', models.CharField(choices=[('live', 'Live Boar'), ('ai_semen', 'AI Semen')], default='live', max_length=10)),
                ('semen_straws', models.PositiveIntegerField(blank=True, help_text='Straws on hand (AI semen only)', null=True)),
                ('supplier', models.CharField(blank=True, max_length=200)),
                ('photo', models.ImageField(blank=True, null=True, upload_to='boars/')),
                ('right_ear_notch', models.PositiveIntegerField(blank=True, null=True)),
                ('left_ear_notch', models.PositiveIntegerField(blank=True, null=True)),
                ('registration_number', models.CharField(blank=True, max_length=100)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='boars', to='herd.organization')),
            ],
            options={
                'ordering': ['ear_tag'],
                'unique_together': {('organization', 'ear_tag')},
            },
        ),
        migrations.CreateModel(
            name='Sow',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ear_tag', models.CharField(max_length=50)),
                ('name', models.CharField(blank=True, max_length=100)),
                ('birth_date', models.DateField()),
                ('breed', models.CharField(max_length=100)),
                ('status', models.CharField(choices=[('active', 'Active'), ('culled', 'Culled'), ('sold', 'Sold')], default='active', max_length=10)),
                ('photo', models.ImageField(blank=True, null=True, upload_to='sows/')),
                ('right_ear_notch', models.PositiveIntegerField(blank=True, help_text='Litter number', null=True)),
                ('left_ear_notch', models.PositiveIntegerField(blank=True, help_text='Individual number', null=True)),
                ('registration_number', models.CharField(blank=True, max_length=100)),
                ('notes', models.TextField(blank=True)),
                ('housing_move_in_date', models.DateField(blank=True, null=True)),
                ('sire_name', models.CharField(blank=True, max_length=100)),
                ('dam_name', models.CharField(blank=True, max_length=100)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sows', to='herd.organization')),
                ('housing_unit', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='sows', to='herd.housingunit')),
                ('sire', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='daughters', to='herd.boar', verbose_name='Sire (Father)')),
                ('dam', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='daughters', to='herd.sow', verbose_name='Dam (Mother)')),
            ],
            options={
                'ordering': ['-created_at'],
                'unique_together': {('organization', 'ear_tag')},
            },
        ),
        migrations.CreateModel(
            name='SowDocument',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('file', models.FileField(upload_to='sow_documents/')),
                ('title', models.CharField(max_length=200)),
                ('doc_type', models.CharField(choices=[('Registration', 'Registration Papers'), ('Vet Report', 'Vet Report'), ('Receipt', 'Purchase Receipt'), ('Certificate', 'Certificate'), ('Other', 'Other')], default='Other', max_length=20)),
                ('date_uploaded', models.DateTimeField(auto_now_add=True)),
                ('sow', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='documents', to='herd.sow')),
            ],
            options={
                'ordering': ['-date_uploaded'],
            },
        ),
        migrations.CreateModel(
            name='LocationHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('moved_in_date', models.DateField(default=django.utils.timezone.now)),
                ('moved_out_date', models.DateField(blank=True, null=True)),
                ('sow', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='location_history', to='herd.sow')),
                ('housing_unit', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='location_history', to='herd.housingunit')),
            ],
            options={
                'ordering': ['-moved_in_date'],
                'verbose_name_plural': 'Location history',
            },
        ),
        migrations.CreateModel(
            name='MatrixTreatment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('batch_name', models.CharField(max_length=100)),
                ('administration_date', models.DateField(default=django.utils.timezone.now)),
                ('expected_heat_date', models.DateField(blank=True, help_text='Auto-calculated (5 days) if left blank', null=True)),
                ('actual_heat_date', models.DateField(blank=True, null=True)),
                ('bred', models.BooleanField(default=False)),
                ('breeding_date', models.DateField(blank=True, null=True)),
                ('dosage', models.CharField(blank=True, max_length=50)),
                ('lot_number', models.CharField(blank=True, max_length=50)),
                ('notes', models.TextField(blank=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='matrix_treatments', to='herd.organization')),
                ('sow', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='matrix_treatments', to='herd.sow')),
            ],
            options={
                'ordering': ['-expected_heat_date'],
            },
        ),
        migrations.CreateModel(
            name='BreedingAttempt',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('boar_description', models.CharField(blank=True, help_text='Boar or semen not tracked in the system', max_length=200)),
                ('breeding_method', models.CharField(choices=[('natural', 'Natural'), ('ai', 'Artificial Insemination')], default='natural', max_length=10)),
                ('breeding_date', models.DateField()),
                ('breeding_time', models.TimeField(blank=True, null=True)),
                ('result', models.CharField(choices=[('pending', 'Pending'), ('pregnant', 'Pregnant'), ('not_pregnant', 'Not Pregnant')], default='pending', max_length=15)),
                ('pregnancy_confirmed', models.BooleanField(blank=True, null=True)),
                ('pregnancy_check_date', models.DateField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='breeding_attempts', to='herd.organization')),
                ('sow', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='breeding_attempts', to='herd.sow')),
                ('boar', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='breeding_attempts', to='herd.boar')),
                ('matrix_treatment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='breeding_attempts', to='herd.matrixtreatment')),
            ],
            options={
                'ordering': ['-breeding_date'],
            },
        ),
        migrations.CreateModel(
            name='Farrowing',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('breeding_date', models.DateField()),
                ('expected_farrowing_date', models.DateField(blank=True, help_text='Auto-calculated (114 days) if left blank', null=True)),
                ('actual_farrowing_date', models.DateField(blank=True, null=True)),
                ('live_piglets', models.PositiveIntegerField(blank=True, null=True)),
                ('stillborn', models.PositiveIntegerField(blank=True, null=True)),
                ('mummified', models.PositiveIntegerField(blank=True, null=True)),
                ('moved_out_of_farrowing_date', models.DateField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='farrowings', to='herd.organization')),
                ('sow', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='farrowings', to='herd.sow')),
                ('breeding_attempt', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='farrowing', to='herd.breedingattempt')),
                ('boar', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='farrowings', to='herd.boar')),
            ],
            options={
                'ordering': ['-expected_farrowing_date'],
            },
        ),
        migrations.CreateModel(
            name='Piglet',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ear_tag', models.CharField(blank=True, max_length=50)),
                ('right_ear_notch', models.PositiveIntegerField(blank=True, help_text='Litter number', null=True)),
                ('left_ear_notch', models.PositiveIntegerField(blank=True, help_text='Sequence number in litter', null=True)),
                ('sex', models.CharField(choices=[('male', 'Male'), ('female', 'Female'), ('unknown', 'Unknown')], default='unknown', max_length=7)),
                ('birth_weight', models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ('weaning_weight', models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ('status', models.CharField(choices=[('nursing', 'Nursing'), ('weaned', 'Weaned'), ('sold', 'Sold'), ('died', 'Died')], default='nursing', max_length=7)),
                ('weaned_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='piglets', to='herd.organization')),
                ('farrowing', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='piglets', to='herd.farrowing')),
            ],
            options={
                'ordering': ['right_ear_notch', 'left_ear_notch', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Protocol',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('trigger_event', models.CharField(choices=[('farrowing', 'Farrowing'), ('breeding', 'Breeding'), ('weaning', 'Weaning')], default='farrowing', max_length=10)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='protocols', to='herd.organization')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='ProtocolTask',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('task_name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('days_offset', models.IntegerField(default=0, help_text='Days after the trigger event')),
                ('is_required', models.BooleanField(default=True)),
                ('task_order', models.IntegerField(default=0)),
                ('protocol', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tasks', to='herd.protocol')),
            ],
            options={
                'ordering': ['days_offset', 'task_order'],
            },
        ),
        migrations.CreateModel(
            name='ScheduledTask',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('task_name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('due_date', models.DateField()),
                ('is_completed', models.BooleanField(default=False)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('completed_notes', models.TextField(blank=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='scheduled_tasks', to='herd.organization')),
                ('protocol', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='scheduled_tasks', to='herd.protocol')),
                ('protocol_task', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='scheduled_tasks', to='herd.protocoltask')),
                ('sow', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='scheduled_tasks', to='herd.sow')),
                ('farrowing', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='scheduled_tasks', to='herd.farrowing')),
            ],
            options={
                'ordering': ['due_date', 'id'],
            },
        ),
        migrations.CreateModel(
            name='HealthRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('record_type', models.CharField(choices=[('vaccination', 'Vaccination'), ('treatment', 'Treatment'), ('checkup', 'Checkup'), ('injury', 'Injury'), ('illness', 'Illness'), ('other', 'Other')], default='vaccination', max_length=12)),
                ('record_date', models.DateField(default=django.utils.timezone.now)),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('medication', models.CharField(blank=True, max_length=200)),
                ('dosage', models.CharField(blank=True, max_length=100)),
                ('administered_by', models.CharField(blank=True, max_length=100)),
                ('next_due_date', models.DateField(blank=True, null=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='health_records', to='herd.organization')),
                ('sow', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='health_records', to='herd.sow')),
                ('boar', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='health_records', to='herd.boar')),
                ('piglet', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='health_records', to='herd.piglet')),
            ],
            options={
                'ordering': ['-record_date'],
            },
        ),
        migrations.CreateModel(
            name='Budget',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('budget_name', models.CharField(max_length=200)),
                ('start_date', models.DateField()),
                ('end_date', models.DateField()),
                ('feed_budget', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('veterinary_budget', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('facilities_budget', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('utilities_budget', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('other_budget', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('revenue_target', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('status', models.CharField(choices=[('active', 'Active'), ('closed', 'Closed')], default='active', max_length=10)),
                ('notes', models.TextField(blank=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='budgets', to='herd.organization')),
            ],
            options={
                'ordering': ['-start_date'],
            },
        ),
        migrations.CreateModel(
            name='ExpenseRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('expense_date', models.DateField(default=django.utils.timezone.now)),
                ('expense_category', models.CharField(choices=[('feed', 'Feed'), ('veterinary', 'Veterinary'), ('facilities', 'Facilities'), ('utilities', 'Utilities'), ('other', 'Other')], default='other', max_length=12)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('vendor', models.CharField(blank=True, max_length=200)),
                ('description', models.CharField(blank=True, max_length=200)),
                ('is_deleted', models.BooleanField(default=False)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='expenses', to='herd.organization')),
                ('sow', models.ForeignKey(blank=True, help_text='Optional: link expense to a specific sow', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='expenses', to='herd.sow')),
            ],
            options={
                'ordering': ['-expense_date'],
            },
        ),
        migrations.CreateModel(
            name='IncomeRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('income_date', models.DateField(default=django.utils.timezone.now)),
                ('income_type', models.CharField(choices=[('piglet_sale', 'Piglet Sale'), ('sow_sale', 'Sow Sale'), ('boar_sale', 'Boar Sale'), ('breeding_fee', 'Breeding Fee'), ('other', 'Other')], default='other', max_length=12)),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('price_per_unit', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('total_amount', models.DecimalField(blank=True, decimal_places=2, help_text='Quantity x price if left blank', max_digits=12, null=True)),
                ('buyer', models.CharField(blank=True, max_length=200)),
                ('description', models.CharField(blank=True, max_length=200)),
                ('is_deleted', models.BooleanField(default=False)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='income', to='herd.organization')),
            ],
            options={
                'ordering': ['-income_date'],
            },
        ),
        migrations.CreateModel(
            name='TransferRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('to_user_email', models.EmailField(max_length=254)),
                ('message', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('rejected', 'Rejected'), ('cancelled', 'Cancelled')], default='pending', max_length=10)),
                ('retain_records', models.BooleanField(default=False, help_text="Keep a copy of the animal's records after transfer")),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('responded_at', models.DateTimeField(blank=True, null=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='outgoing_transfers', to='herd.organization')),
                ('sow', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='transfer_requests', to='herd.sow')),
                ('boar', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='transfer_requests', to='herd.boar')),
                ('from_user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sent_transfers', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='NotificationPreference',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('push_enabled', models.BooleanField(default=True)),
                ('email_enabled', models.BooleanField(default=True)),
                ('email_daily_digest', models.BooleanField(default=False)),
                ('sms_enabled', models.BooleanField(default=False)),
                ('phone_number', models.CharField(blank=True, max_length=20)),
                ('notify_farrowing', models.BooleanField(default=True)),
                ('notify_breeding', models.BooleanField(default=True)),
                ('notify_pregnancy_check', models.BooleanField(default=True)),
                ('notify_weaning', models.BooleanField(default=True)),
                ('notify_vaccination', models.BooleanField(default=True)),
                ('notify_health_records', models.BooleanField(default=True)),
                ('notify_matrix', models.BooleanField(default=False)),
                ('notify_tasks', models.BooleanField(default=True)),
                ('notify_transfers', models.BooleanField(default=False)),
                ('notify_compliance', models.BooleanField(default=True)),
                ('quiet_hours_start', models.TimeField(blank=True, null=True)),
                ('quiet_hours_end', models.TimeField(blank=True, null=True)),
                ('timezone', models.CharField(default='America/Los_Angeles', max_length=64)),
                ('farrowing_reminder_days', models.CharField(default='7,3,1', max_length=50)),
                ('pregnancy_check_reminder_days', models.CharField(default='1', max_length=50)),
                ('weaning_reminder_days', models.CharField(default='3,1', max_length=50)),
                ('vaccination_reminder_days', models.CharField(default='7,3,1', max_length=50)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='notification_preference', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('notification_type', models.CharField(choices=[('farrowing', 'Farrowing'), ('breeding', 'Breeding'), ('pregnancy_check', 'Pregnancy Check'), ('weaning', 'Weaning'), ('vaccination', 'Vaccination'), ('health_records', 'Health'), ('tasks', 'Task'), ('transfers', 'Transfer'), ('compliance', 'Compliance'), ('matrix', 'Matrix')], max_length=20)),
                ('title', models.CharField(max_length=200)),
                ('message', models.TextField()),
                ('link_url', models.CharField(blank=True, max_length=200)),
                ('dedupe_key', models.CharField(blank=True, db_index=True, max_length=200)),
                ('scheduled_for', models.DateTimeField(default=django.utils.timezone.now)),
                ('sent_at', models.DateTimeField(blank=True, null=True)),
                ('is_read', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to=settings.AUTH_USER_MODEL)),
                ('organization', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to='herd.organization')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
    ]
