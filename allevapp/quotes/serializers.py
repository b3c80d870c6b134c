from rest_framework import serializers
from allevapp.parties.models import Supplier
from .models import Quote


class QuoteSerializer(serializers.ModelSerializer):
    # Fields copied onto the order confirmation when a quote is accepted
    ACCEPTED_LOCKED_FIELDS = ['title', 'farm', 'supplier', 'amount', 'report', 'project']

    supplier_name = serializers.CharField(source='supplier.name', read_only=True)
    supplier_email = serializers.CharField(source='supplier.email', read_only=True)
    farm_name = serializers.CharField(source='farm.name', read_only=True)
    report_title = serializers.CharField(source='report.title', read_only=True)
    project_number = serializers.CharField(source='project.project_number', read_only=True)
    created_by_name = serializers.CharField(source='created_by.get_display_name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    order_number = serializers.SerializerMethodField()

    class Meta:
        model = Quote
        fields = [
            'id', 'title', 'description', 'report', 'report_title', 'supplier', 'supplier_name',
            'supplier_email', 'farm', 'farm_name', 'project', 'project_number', 'amount',
            'status', 'status_display', 'requested_at', 'due_date', 'notes', 'order_number',
            'created_by', 'created_by_name', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def get_order_number(self, obj):
        order = getattr(obj, 'order_confirmation', None)
        return order.order_number if order else None

    def validate_amount(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError('Amount cannot be negative')
        return value

    def validate_status(self, value):
        current = self.instance.status if self.instance else None
        if value == Quote.STATUS_ACCEPTED and current != Quote.STATUS_ACCEPTED:
            raise serializers.ValidationError(
                'Quotes are accepted through the accept endpoint, which also creates the order'
            )
        if current == Quote.STATUS_ACCEPTED and value != Quote.STATUS_ACCEPTED:
            raise serializers.ValidationError('An accepted quote already has an order and cannot change status')
        return value

    def validate(self, attrs):
        if self.instance is not None and self.instance.status == Quote.STATUS_ACCEPTED:
            changed = [
                field for field in self.ACCEPTED_LOCKED_FIELDS
                if field in attrs and attrs[field] != getattr(self.instance, field)
            ]
            if changed:
                raise serializers.ValidationError(
                    {field: 'Cannot be changed once the quote is accepted' for field in changed}
                )

        report = attrs.get('report', getattr(self.instance, 'report', None))
        project = attrs.get('project', getattr(self.instance, 'project', None))
        farm = attrs.get('farm', getattr(self.instance, 'farm', None))

        if farm is None and report is not None:
            farm = report.farm
            attrs['farm'] = farm
        if report is not None and farm is not None and report.farm_id != farm.id:
            raise serializers.ValidationError({'report': 'Report belongs to a different farm'})
        if project is not None and farm is not None and project.farm_id != farm.id:
            raise serializers.ValidationError({'project': 'Project belongs to a different farm'})

        reopening = (
            self.instance is not None
            and self.instance.status == Quote.STATUS_REJECTED
            and attrs.get('status') in Quote.OPEN_STATUSES
        )
        if reopening and farm is not None:
            title = attrs.get('title', self.instance.title)
            accepted = Quote.objects.filter(
                farm=farm, title=title, status=Quote.STATUS_ACCEPTED
            ).exclude(pk=self.instance.pk)
            if accepted.exists():
                raise serializers.ValidationError(
                    {'status': 'Another quote for the same farm and title is already accepted'}
                )
        return attrs


class QuoteRequestSerializer(serializers.Serializer):
    """One quote request fanned out to several suppliers"""
    ENTITY_CHOICES = ['report', 'equipment', 'facility']

    subject = serializers.CharField(max_length=255)
    description = serializers.CharField()
    entity_type = serializers.ChoiceField(choices=ENTITY_CHOICES)
    entity_id = serializers.IntegerField()
    supplier_ids = serializers.PrimaryKeyRelatedField(
        many=True, queryset=Supplier.objects.filter(is_active=True), allow_empty=False
    )
    due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    project = serializers.IntegerField(required=False, allow_null=True)
    send_email = serializers.BooleanField(required=False, default=True)

    def validate_subject(self, value):
        if not value.strip():
            raise serializers.ValidationError('Subject cannot be blank')
        return value.strip()

    def validate_description(self, value):
        if not value.strip():
            raise serializers.ValidationError('Description cannot be blank')
        return value
