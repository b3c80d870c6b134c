from rest_framework import serializers
from rest_framework.settings import ISO_8601


class ContactInfoSerializer(serializers.Serializer):
    company_name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)


class QuoteEmailSerializer(serializers.Serializer):
    to = serializers.EmailField()
    supplier_name = serializers.CharField(max_length=200)
    quote_title = serializers.CharField(max_length=255)
    quote_description = serializers.CharField()
    farm_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    contact_info = ContactInfoSerializer(required=False)


class PasswordEmailSerializer(serializers.Serializer):
    to = serializers.EmailField()
    user_name = serializers.CharField(max_length=200)
    username = serializers.CharField(max_length=150)
    password = serializers.CharField()
    role = serializers.ChoiceField(choices=['admin', 'manager', 'technician'])


class CalendarEventSerializer(serializers.Serializer):
    subject = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    start_date_time = serializers.DateTimeField(input_formats=[ISO_8601, '%Y-%m-%d'])
    end_date_time = serializers.DateTimeField(input_formats=[ISO_8601, '%Y-%m-%d'], required=False, allow_null=True)
    location = serializers.CharField(max_length=255, required=False, allow_blank=True)
    attendees = serializers.ListField(child=serializers.EmailField(), required=False, default=list)
    is_all_day = serializers.BooleanField(required=False, default=False)
    reminder_minutes = serializers.IntegerField(required=False, default=15, min_value=0)
    selected_user = serializers.IntegerField(required=False, allow_null=True)

    def validate(self, attrs):
        start = attrs['start_date_time']
        end = attrs.get('end_date_time')
        if end and end < start:
            raise serializers.ValidationError({'end_date_time': 'End must not be before start'})
        return attrs
