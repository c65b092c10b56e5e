from django.utils.text import slugify
from rest_framework import serializers
from .models import TutorialCategory, Tutorial, TutorialProgress
from .progress import progress_percentage


class TutorialCategorySerializer(serializers.ModelSerializer):
    tutorial_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = TutorialCategory
        fields = ['id', 'name', 'slug', 'description', 'icon', 'color', 'sort_order', 'is_active', 'tutorial_count']


class TutorialSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)
    category_slug = serializers.CharField(source='category.slug', read_only=True)
    is_global = serializers.SerializerMethodField()
    slug = serializers.SlugField(max_length=255, required=False)

    class Meta:
        model = Tutorial
        fields = ['id', 'title', 'slug', 'description', 'category', 'category_name', 'category_slug', 'type',
                  'difficulty', 'estimated_time', 'video_url', 'video_thumbnail', 'interactive_steps', 'content',
                  'tags', 'prerequisites', 'view_count', 'average_rating', 'total_ratings', 'is_published',
                  'is_global', 'created_at', 'updated_at']
        read_only_fields = ['view_count', 'average_rating', 'total_ratings', 'created_at', 'updated_at']

    def get_is_global(self, obj):
        return obj.organization_id is None

    def validate_interactive_steps(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Interactive steps must be a list.')
        return value

    def validate_tags(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Tags must be a list.')
        return [str(tag).strip() for tag in value if str(tag).strip()]

    def validate(self, attrs):
        if not attrs.get('slug') and not self.instance:
            attrs['slug'] = slugify(attrs.get('title', ''))[:255]
        slug = attrs.get('slug')
        if slug:
            existing = Tutorial.objects.filter(slug=slug)
            if self.instance:
                existing = existing.exclude(pk=self.instance.pk)
            if existing.exists():
                raise serializers.ValidationError({'slug': 'A tutorial with this slug already exists.'})
        elif not self.instance:
            raise serializers.ValidationError({'slug': 'Could not derive a slug from the title.'})
        return attrs


class TutorialProgressSerializer(serializers.ModelSerializer):
    tutorial = TutorialSerializer(read_only=True)
    tutorial_id = serializers.IntegerField(source='tutorial.id', read_only=True)
    completion_percentage = serializers.SerializerMethodField()

    class Meta:
        model = TutorialProgress
        fields = ['id', 'tutorial_id', 'tutorial', 'status', 'current_step', 'completed_steps', 'started_at',
                  'completed_at', 'time_spent', 'rating', 'feedback', 'completion_percentage', 'created_at',
                  'updated_at']

    def get_completion_percentage(self, obj):
        return progress_percentage(obj)


class StartTutorialSerializer(serializers.Serializer):
    tutorial_id = serializers.IntegerField()


class ProgressUpdateSerializer(serializers.Serializer):
    step_completed = serializers.JSONField(required=False)
    current_step = serializers.IntegerField(min_value=0, required=False)
    time_spent = serializers.IntegerField(min_value=0, required=False, help_text="Seconds to add")
    completed = serializers.BooleanField(required=False)
    rating = serializers.IntegerField(min_value=1, max_value=5, required=False)
    feedback = serializers.CharField(required=False, allow_blank=True)
